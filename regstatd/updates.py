"""
Turn a registry event into an upsert for the repository statistics document.

Everything here is pure: no I/O and no state, the same event always produces
the same update.
"""

import datetime

from .errors import UnsupportedActionError, UnsupportedMediaTypeError
from .events import MANIFEST_MEDIA_TYPE, EventAction

ATTR_REPOSITORY_NAME = "repositoryName"
ATTR_FIRST_PUSHED = "firstPushed"
ATTR_LAST_PUSHED = "lastPushed"
ATTR_FIRST_PULLED = "firstPulled"
ATTR_LAST_PULLED = "lastPulled"
ATTR_NUM_PUSHES = "numPushes"
ATTR_NUM_PULLS = "numPulls"
ATTR_NUM_STARS = "numStars"
ATTR_ACTORS = "actors"

# Seeded on insert into the timestamp pair an event doesn't touch, so the
# first real event of that kind always wins both the $min and the $max.
NEVER_FIRST = datetime.datetime(2099, 1, 1, tzinfo=datetime.timezone.utc)
NEVER_LAST = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

# action -> (first field, last field, counter field)
TRACKED_FIELDS = {
    EventAction.PUSH: (ATTR_FIRST_PUSHED, ATTR_LAST_PUSHED, ATTR_NUM_PUSHES),
    EventAction.PULL: (ATTR_FIRST_PULLED, ATTR_LAST_PULLED, ATTR_NUM_PULLS),
}


class UpdateOperation:
    """Field updates for one document, grouped by how they merge."""

    GROUPS = ("set", "set_on_insert", "min", "max", "add_to_set", "inc")

    def __init__(self):
        self.set = {}
        self.set_on_insert = {}
        self.min = {}
        self.max = {}
        self.add_to_set = {}
        self.inc = {}

    def groups(self):
        for group in self.GROUPS:
            yield group, getattr(self, group)

    def fields(self):
        for group, values in self.groups():
            yield from values

    def __eq__(self, other):
        if not isinstance(other, UpdateOperation):
            return NotImplemented
        return dict(self.groups()) == dict(other.groups())

    def __repr__(self):
        groups = ", ".join(f"{group}={values!r}" for group, values in self.groups())
        return f"UpdateOperation({groups})"


def selector_for(event):
    return {ATTR_REPOSITORY_NAME: event.repository}


def build_update(event, media_types=(MANIFEST_MEDIA_TYPE,)):
    """Return the ``(selector, operation)`` upsert that counts ``event``.

    Raises UnsupportedActionError for anything but a push or a pull and
    UnsupportedMediaTypeError for events that aren't about a manifest.
    """
    if event.action not in TRACKED_FIELDS:
        raise UnsupportedActionError(event.raw_action or event.action.value)

    if event.media_type not in media_types:
        raise UnsupportedMediaTypeError(event.media_type, media_types)

    operation = UpdateOperation()
    operation.set[ATTR_REPOSITORY_NAME] = event.repository
    operation.set_on_insert[ATTR_NUM_STARS] = 0

    for action, (first, last, counter) in TRACKED_FIELDS.items():
        if action == event.action:
            operation.min[first] = event.timestamp
            operation.max[last] = event.timestamp
            operation.inc[counter] = 1
        else:
            operation.set_on_insert[first] = NEVER_FIRST
            operation.set_on_insert[last] = NEVER_LAST
            operation.inc[counter] = 0

    operation.add_to_set[ATTR_ACTORS] = event.actor

    return selector_for(event), operation
