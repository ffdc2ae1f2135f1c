import doctest

import pytest

import restream.streamer
from restream.streamer import _recurrence, _streamer, _tee


@pytest.mark.parametrize('module', [restream.streamer, _streamer, _recurrence, _tee])
def test_docs(module):
    print('\n... running doctest on', module.__name__, '...')
    result = doctest.testmod(module)
    assert result.attempted > 0
    assert result.failed == 0
