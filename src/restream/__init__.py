"""
The package `restream` provides lazy, pull-based, restartable async streams
and composable operators on them, including most notably

1. Stack-safe generation of unlimited streams from a step function
   (:func:`restream.streamer.from_recurrence`).
2. Splitting one single-pass source into independently paced consumers
   (:func:`restream.streamer.broadcast`).
3. Stateful "consume and re-emit" operators such as
   :meth:`~restream.streamer.Stream.chunks_of` and :meth:`~restream.streamer.Stream.chop`.

See :mod:`restream.streamer` for an introduction.

To install, do

::

   python3 -m pip install restream
"""

__version__ = '0.1.0'


from . import logging, streamer
from ._common import ABSENT, StreamConsumedError, StreamError
from .streamer import Stream, broadcast, execute, from_recurrence
