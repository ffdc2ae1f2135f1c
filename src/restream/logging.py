"""
Configure logging, mainly the format.

A call to the function ``config_logger`` in a launching script (or a test ``conftest.py``)
is all that is needed to set up the logging format.
Usually the 'level' argument is the only argument one needs to customize::

  config_logger(level='debug')

If `level` is not specified, environment variable `LOGLEVEL` is used;
if that is not set, a default level (currently 'info') is used.

Do not call this in library modules.
Library modules should have ::

   logger = logging.getLogger(__name__)

and then just use ``logger`` to write logs without concern about formatting,
destination of the log message, etc.
The modules of ``restream`` log at the DEBUG level only, for example the
life cycle of :class:`~restream.streamer.BroadcastSession` objects.
"""

import logging
import os
import time
import warnings
from datetime import datetime, timezone as dt_timezone
from logging import Formatter
from typing import Optional, Union

import pytz

DEFAULT_LEVEL = 'info'


def log_level_from_str(level: Union[str, int]) -> int:
    '''
    `level`: 'debug', 'info', etc., or one of `logging.DEBUG`, `logging.INFO`, etc.
    '''
    if isinstance(level, int):
        return level
    z = logging.getLevelName(level.upper())
    if not isinstance(z, int):
        raise ValueError(f"unknown logging level {level!r}")
    return z


def _make_converter(timezone: str):
    if timezone.lower() == 'utc':
        return time.gmtime
    if timezone.lower() == 'local':
        return time.localtime
    tz = pytz.timezone(timezone)

    def custom_time(seconds=None):
        if seconds is None:
            seconds = time.time()
        dt = datetime.fromtimestamp(seconds, dt_timezone.utc)
        return dt.astimezone(tz).timetuple()

    return custom_time


def make_formatter(
    *,
    timezone: str = 'UTC',
    with_thread_name: bool = False,
) -> Formatter:
    datefmt = '%Y-%m-%d %H:%M:%S'

    msg = '[%(asctime)s.%(msecs)03d ' + timezone + \
        '; %(levelname)s; %(name)s, %(funcName)s, %(lineno)d]'
    msg += '  '
    if with_thread_name:
        fmt = f'{msg}[%(threadName)s]  %(message)s'
    else:
        fmt = f'{msg}%(message)s'

    formatter = Formatter(fmt, datefmt=datefmt)
    formatter.converter = _make_converter(timezone)
    return formatter


def config_logger(
    *,
    level: Optional[Union[str, int]] = None,
    timezone: str = 'UTC',
    with_thread_name: bool = False,
) -> None:
    '''
    Replace the handlers of the root logger by one stream handler
    with the format above.

    `timezone`: 'UTC', 'local', or a name known to `pytz`, like 'US/Pacific'.

    `with_thread_name`: include the name of the thread that logs the record.
    '''
    if level is None:
        level = os.environ.get('LOGLEVEL', DEFAULT_LEVEL)
    level = log_level_from_str(level)

    handler = logging.StreamHandler()
    handler.setFormatter(make_formatter(timezone=timezone, with_thread_name=with_thread_name))

    rootlogger = logging.getLogger()
    if rootlogger.hasHandlers():
        rootlogger.handlers = []
    rootlogger.addHandler(handler)
    rootlogger.setLevel(level)

    logging.captureWarnings(True)
    warnings.filterwarnings('default', category=ResourceWarning)
    warnings.filterwarnings('default', category=DeprecationWarning)
