import asyncio
import logging

import aiohttp.web
import ujson

from .tls import create_server_context

logger = logging.getLogger(__name__)


def create_app(routes, **context):
    app = aiohttp.web.Application()

    for key, value in context.items():
        app[key] = value
    app.add_routes(routes)

    return app


def json_response(payload, status=200):
    return aiohttp.web.json_response(payload, status=status, dumps=ujson.dumps)


async def run_server(
    server_name, bind_config, routes, access_log_class=None, **context
):
    app = create_app(routes, **context)

    kwargs = {}
    if access_log_class:
        kwargs["access_log_class"] = access_log_class

    runner = aiohttp.web.AppRunner(app, handle_signals=False, **kwargs)
    await runner.setup()

    host = bind_config["address"].get(str)
    port = bind_config["port"].get(int)

    site = aiohttp.web.TCPSite(
        runner,
        host,
        port,
        shutdown_timeout=1.0,
        ssl_context=create_server_context(bind_config["tls"]),
    )
    await site.start()

    sockname = site._server.sockets[0].getsockname()
    bind_config["address"].set(sockname[0])
    bind_config["port"].set(sockname[1])

    logger.info("%s listening on %s:%d", server_name, sockname[0], sockname[1])

    try:
        # Sleep forever. No activity is needed.
        await asyncio.Event().wait()
    finally:
        await asyncio.shield(runner.shutdown())
        await asyncio.shield(runner.cleanup())
