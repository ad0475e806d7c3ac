import logging

import ujson
from aiohttp import web

from . import exceptions
from .errors import EnvelopeDecodeError, EventRejected, StoreFailed
from .events import EVENTS_MEDIA_TYPE, decode_envelope
from .utils.web import json_response, run_server

logger = logging.getLogger(__name__)


def ignore(reason):
    # The registry queues up and retries anything that isn't a 200, so
    # requests we don't care about still get one.
    logger.warning("Ignoring request: %s", reason)
    return json_response({"ignored": True, "message": f"Ignoring request. {reason}"})


async def receive_events(request):
    if request.method != "POST":
        return ignore(f'Required method is "POST" but got "{request.method}".')

    if not request.body_exists:
        return ignore("Required non-empty request body.")

    if request.content_type != EVENTS_MEDIA_TYPE:
        return ignore(
            f'Required mimetype is "{EVENTS_MEDIA_TYPE}" '
            f'but got "{request.content_type}".'
        )

    body = await request.read()
    if not body.strip():
        return ignore("Required non-empty request body.")

    try:
        payload = ujson.loads(body)
    except ValueError as e:
        raise exceptions.EnvelopeInvalid(reason=f"Request couldn't be decoded: {e}")

    try:
        envelope = decode_envelope(payload)
    except EnvelopeDecodeError as e:
        if e.index is None:
            raise exceptions.EnvelopeInvalid(reason=e.reason)
        raise exceptions.EnvelopeInvalid(index=e.index, reason=e.reason)

    intake = request.app["intake"]
    metrics = request.app["metrics"]

    try:
        applied = await intake.apply(envelope)
    except EventRejected as e:
        metrics.observe(envelope, e)
        raise exceptions.EventUnsupported(index=e.index, reason=str(e.reason))
    except StoreFailed as e:
        metrics.observe(envelope, e)
        raise exceptions.StoreUnavailable(index=e.index, reason=str(e.reason))

    metrics.observe(envelope)
    logger.info("Applied %d event(s) from %s", applied, request.remote)

    return json_response({"applied": applied})


def create_routes(route):
    routes = web.RouteTableDef()
    routes.route("*", route)(receive_events)
    return routes


async def run_notifications(config, intake, metrics):
    return await run_server(
        "notifications",
        config["endpoint"],
        create_routes(config["endpoint"]["route"].get(str)),
        intake=intake,
        metrics=metrics,
    )
