class EventInvalid(Exception):
    """An event that cannot be turned into a repository update."""


class UnsupportedActionError(EventInvalid):
    def __init__(self, action):
        self.action = action
        super().__init__(f"Unsupported event action: {action!r}")


class UnsupportedMediaTypeError(EventInvalid):
    def __init__(self, media_type, expected):
        self.media_type = media_type
        self.expected = tuple(expected)
        super().__init__(
            f"Unsupported target media type: {media_type!r}. "
            f"Expected one of: {', '.join(self.expected)}"
        )


class EnvelopeDecodeError(Exception):
    def __init__(self, reason, index=None):
        self.reason = reason
        self.index = index
        if index is None:
            super().__init__(reason)
        else:
            super().__init__(f"event {index}: {reason}")


class StoreError(Exception):
    """The repository store failed to apply a write."""


class BatchAborted(Exception):
    """Processing of an envelope stopped at ``index``.

    Every event before ``index`` has already been applied to the store and
    stays applied.
    """

    def __init__(self, index, reason):
        self.index = index
        self.reason = reason
        super().__init__(f"event {index}: {reason}")

    @property
    def applied(self):
        return self.index


class EventRejected(BatchAborted):
    pass


class StoreFailed(BatchAborted):
    pass
