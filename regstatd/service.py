import argparse
import asyncio
import logging
import sys

import coloredlogs
import confuse
import uvloop
import verboselogs

from . import config as settings
from .intake import EnvelopeIntake
from .notifications import run_notifications
from .prometheus import EventMetrics, run_prometheus
from .store import create_store

logger = logging.getLogger(__name__)


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Collect docker registry notifications into repository stats"
    )
    parser.add_argument("--config", help="Path to an additional YAML config file")
    parser.add_argument("--listen-address", dest="endpoint.address")
    parser.add_argument("--listen-port", dest="endpoint.port", type=int)
    parser.add_argument("--route", dest="endpoint.route")
    parser.add_argument("--cert", dest="endpoint.tls.certificate")
    parser.add_argument("--cert-key", dest="endpoint.tls.key")
    parser.add_argument("--storage", dest="storage.backend")
    parser.add_argument("--mongodb-url", dest="mongodb.url")
    parser.add_argument("--db-name", dest="mongodb.database")
    parser.add_argument("--db-collection", dest="mongodb.collection")
    return parser.parse_args(argv)


async def main(argv=None, config=None):
    verboselogs.install()
    coloredlogs.install(
        level="DEBUG", fmt="%(asctime)s %(name)s %(levelname)s %(message)s"
    )

    args = parse_args(argv if argv is not None else sys.argv[1:])

    if config is None:
        config = confuse.Configuration("regstatd", __name__)

    if args.config:
        config.set_file(args.config)
    del args.config

    config.set_args(args, dots=True)

    config["mongodb"]["password"].redact = True
    config["mongodb"]["url"].redact = True

    logger.debug("Configuration directory: %s", config.config_dir())
    logger.debug(settings.dump(config))

    settings.validate(config)

    store = create_store(config)
    await store.ensure_indexes()

    intake = EnvelopeIntake(store, settings.media_types(config))
    metrics = EventMetrics()

    services = [
        run_notifications(config, intake, metrics),
        run_prometheus(config, metrics),
    ]

    try:
        await asyncio.gather(*services)

    except asyncio.CancelledError:
        pass

    finally:
        await store.close()


def run():
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
