from aiohttp import web
from aiohttp.abc import AbstractAccessLogger
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    generate_latest,
)

from .errors import EventRejected, StoreFailed
from .utils.web import json_response, run_server


class EventMetrics:
    """What the notification endpoint did with each event, per action."""

    def __init__(self, registry=None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.applied = Counter(
            "regstatd_events_applied",
            "Events applied to the repository store",
            ["action"],
            registry=self.registry,
        )

        self.rejected = Counter(
            "regstatd_events_rejected",
            "Events rejected as unsupported, stopping their envelope",
            ["action"],
            registry=self.registry,
        )

        self.failed = Counter(
            "regstatd_store_failures",
            "Events the repository store failed to write",
            ["action"],
            registry=self.registry,
        )

    def observe(self, envelope, error=None):
        applied = len(envelope) if error is None else error.applied
        for event in envelope[:applied]:
            self.applied.labels(event.action.value).inc()

        if isinstance(error, EventRejected):
            self.rejected.labels(envelope[error.index].action.value).inc()
        elif isinstance(error, StoreFailed):
            self.failed.labels(envelope[error.index].action.value).inc()


class PrometheusAccessLog(AbstractAccessLogger):
    def log(self, request, response, time):
        pass


routes = web.RouteTableDef()


@routes.get("/healthz")
async def healthz(request):
    return json_response({"ok": True})


@routes.get("/metrics")
async def metrics(request):
    body = generate_latest(request.app["metrics_registry"])
    response = web.Response(body=body)
    response.headers["Content-Type"] = CONTENT_TYPE_LATEST
    return response


async def run_prometheus(config, metrics):
    return await run_server(
        "prometheus",
        config["prometheus"],
        routes,
        access_log_class=PrometheusAccessLog,
        metrics_registry=metrics.registry,
    )
