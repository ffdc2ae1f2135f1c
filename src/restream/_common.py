class _Absent:
    # Marks "no value" where ``None`` is a legitimate element.
    __slots__ = ()

    def __repr__(self):
        return 'ABSENT'

    def __bool__(self):
        return False

    def __reduce__(self):
        return 'ABSENT'


ABSENT = _Absent()


class StreamError(Exception):
    pass


class StreamConsumedError(StreamError, RuntimeError):
    """
    Raised when a single-use stream, such as a fork produced by
    :func:`~restream.streamer.broadcast`, is iterated a second time.
    """
