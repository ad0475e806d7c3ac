import json

from aiohttp import web


class JSONExceptionMixin:
    def __init__(self, **kwargs):
        error = {
            "code": self.code,
            "message": self.message.format(**kwargs),
        }

        if kwargs:
            error["detail"] = kwargs

        super().__init__(
            content_type="application/json", text=json.dumps({"errors": [error]}),
        )


class EnvelopeInvalid(JSONExceptionMixin, web.HTTPBadRequest):

    """The request body could not be decoded as registry notifications."""

    code = "ENVELOPE_INVALID"
    message = "notification envelope could not be decoded"


class EventUnsupported(JSONExceptionMixin, web.HTTPBadRequest):

    """An event in the envelope cannot be counted; later events were skipped."""

    code = "EVENT_UNSUPPORTED"
    message = "event {index} was rejected: {reason}"


class StoreUnavailable(JSONExceptionMixin, web.HTTPBadGateway):

    """The document store failed; events before ``index`` were applied."""

    code = "STORE_UNAVAILABLE"
    message = "event {index} could not be stored: {reason}"
