import json

from regstatd.exceptions import EnvelopeInvalid, EventUnsupported, StoreUnavailable


def test_envelope_invalid():
    exception = EnvelopeInvalid()

    assert exception.status_code == 400
    assert exception.reason == "Bad Request"
    assert json.loads(exception.text) == {
        "errors": [
            {
                "code": "ENVELOPE_INVALID",
                "message": "notification envelope could not be decoded",
            }
        ]
    }
    assert exception.content_type == "application/json"


def test_event_unsupported():
    exception = EventUnsupported(index=3, reason="Unsupported event action: 'mount'")

    assert exception.status_code == 400
    assert json.loads(exception.text) == {
        "errors": [
            {
                "code": "EVENT_UNSUPPORTED",
                "message": "event 3 was rejected: Unsupported event action: 'mount'",
                "detail": {"index": 3, "reason": "Unsupported event action: 'mount'"},
            }
        ]
    }


def test_store_unavailable():
    exception = StoreUnavailable(index=0, reason="timed out")

    assert exception.status_code == 502
    assert exception.reason == "Bad Gateway"
    assert json.loads(exception.text)["errors"][0]["message"] == (
        "event 0 could not be stored: timed out"
    )
