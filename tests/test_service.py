import asyncio
import json

import aiohttp

from regstatd.events import EVENTS_MEDIA_TYPE
from regstatd.service import main


async def wait_for_port(bind_config):
    for i in range(100):
        port = bind_config["port"].get(int)
        if port != 0:
            return port
        await asyncio.sleep(0.05)
    raise RuntimeError("Server did not start")


async def test_service(config, make_payload):
    server = asyncio.ensure_future(main([], config))

    try:
        endpoint_port = await wait_for_port(config["endpoint"])
        prometheus_port = await wait_for_port(config["prometheus"])

        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"http://127.0.0.1:{endpoint_port}/events",
                data=json.dumps({"events": [make_payload("push")]}),
                headers={"Content-Type": EVENTS_MEDIA_TYPE},
            ) as resp:
                assert resp.status == 200
                assert await resp.json() == {"applied": 1}

            async with session.get(
                f"http://127.0.0.1:{prometheus_port}/metrics"
            ) as resp:
                assert resp.status == 200
                body = await resp.text()
                assert 'regstatd_events_applied_total{action="push"} 1.0' in body

    finally:
        # Cancel server. Ignore CancelledError.
        server.cancel()
        try:
            await server
        except asyncio.CancelledError:
            pass


async def test_service_route_override(config):
    server = asyncio.ensure_future(main(["--route", "/hooks/registry"], config))

    try:
        endpoint_port = await wait_for_port(config["endpoint"])

        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"http://127.0.0.1:{endpoint_port}/hooks/registry"
            ) as resp:
                assert resp.status == 200
                assert (await resp.json())["ignored"] is True

            async with session.get(f"http://127.0.0.1:{endpoint_port}/events") as resp:
                assert resp.status == 404

    finally:
        server.cancel()
        try:
            await server
        except asyncio.CancelledError:
            pass
