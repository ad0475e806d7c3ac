import logging

from .errors import (
    EventInvalid,
    EventRejected,
    StoreError,
    StoreFailed,
    UnsupportedActionError,
)
from .events import MANIFEST_MEDIA_TYPE, EventAction
from .updates import build_update, selector_for
from .utils.dispatch import Dispatcher

logger = logging.getLogger(__name__)

handlers = Dispatcher()


@handlers.register(EventAction.DELETE)
async def remove_repository(intake, event):
    await intake.store.remove(selector_for(event))


@handlers.register(EventAction.PUSH, EventAction.PULL)
async def count_event(intake, event):
    selector, operation = build_update(event, intake.media_types)
    return await intake.store.upsert(selector, operation)


class EnvelopeIntake:
    """Applies each event of an envelope to the repository store, in order.

    Stops at the first event that is rejected or that the store fails to
    write. Nothing is rolled back, the index carried by the raised
    BatchAborted is also the number of events that were applied.
    """

    def __init__(self, store, media_types=(MANIFEST_MEDIA_TYPE,)):
        self.store = store
        self.media_types = tuple(media_types)

    async def apply(self, envelope):
        for index, event in enumerate(envelope):
            handler = handlers.get(event.action)

            try:
                if handler is None:
                    raise UnsupportedActionError(event.raw_action)
                await handler(self, event)

            except EventInvalid as e:
                logger.warning("Rejected event %d (%s): %s", index, event.id, e)
                raise EventRejected(index, e) from e

            except StoreError as e:
                logger.exception("Store failed on event %d (%s)", index, event.id)
                raise StoreFailed(index, e) from e

            logger.debug(
                "Applied %s of %s by %r",
                event.action.value,
                event.repository,
                event.actor,
            )

        return len(envelope)
