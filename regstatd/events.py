import enum
import json
import logging
import os
import pathlib
import typing
from datetime import datetime

import iso8601
from jsonschema import ValidationError, validate

from .errors import EnvelopeDecodeError

logger = logging.getLogger(__name__)

# Content type the registry uses when POSTing notifications
EVENTS_MEDIA_TYPE = "application/vnd.docker.distribution.events.v1+json"

# Only manifest level events are a logical image push or pull, layer blob
# transfers are not counted.
MANIFEST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v1+json"


class EventAction(str, enum.Enum):

    PUSH = "push"
    PULL = "pull"
    DELETE = "delete"

    # Anything the registry may send that we don't know how to count
    UNSUPPORTED = "unsupported"

    @classmethod
    def _missing_(cls, value):
        return cls.UNSUPPORTED


class RegistryEvent(typing.NamedTuple):

    action: EventAction
    media_type: str
    repository: str
    actor: str
    timestamp: datetime
    raw_action: str = ""
    id: str = ""

    @classmethod
    def from_dict(cls, event: dict):
        target = event["target"]
        raw_action = event["action"]

        try:
            timestamp = iso8601.parse_date(event["timestamp"])
        except iso8601.ParseError as e:
            raise EnvelopeDecodeError(f"invalid timestamp: {e}")

        return cls(
            action=EventAction(raw_action),
            media_type=target.get("mediaType", ""),
            repository=target["repository"],
            actor=event.get("actor", {}).get("name", ""),
            timestamp=timestamp,
            raw_action=raw_action,
            id=event.get("id", ""),
        )


def load_schemas():
    schemas = {}

    schema_path = pathlib.Path(__file__).parent / "schemas"
    for path in os.listdir(schema_path):
        sub_type = path.rsplit(".", 1)[0]
        content_type = f"application/{sub_type}"

        logger.debug("Loading schema %s", path)
        with open(schema_path / path, "r") as fp:
            schemas[content_type] = json.load(fp)

    return schemas


def _failing_index(error: ValidationError):
    path = list(error.absolute_path)
    if len(path) >= 2 and path[0] == "events" and isinstance(path[1], int):
        return path[1]
    return None


def decode_envelope(payload):
    """Turn a decoded JSON body into the ordered list of events it carries.

    Older registries POST a single event rather than an envelope, that is
    treated as an envelope of one.
    """
    if isinstance(payload, dict) and "events" not in payload:
        payload = {"events": [payload]}

    try:
        validate(instance=payload, schema=schemas[EVENTS_MEDIA_TYPE])
    except ValidationError as e:
        raise EnvelopeDecodeError(e.message, index=_failing_index(e))

    envelope = []
    for index, event in enumerate(payload["events"]):
        try:
            envelope.append(RegistryEvent.from_dict(event))
        except EnvelopeDecodeError as e:
            raise EnvelopeDecodeError(e.reason, index=index)

    return envelope


schemas = load_schemas()
