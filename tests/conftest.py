import datetime
import logging

import confuse
import pytest

from regstatd.events import MANIFEST_MEDIA_TYPE, EventAction, RegistryEvent
from regstatd.intake import EnvelopeIntake
from regstatd.prometheus import EventMetrics
from regstatd.store import MemoryRepositoryStore

T1 = datetime.datetime(2006, 1, 2, 15, 4, 5, tzinfo=datetime.timezone.utc)


@pytest.fixture(autouse=True)
def configure_logging(caplog):
    caplog.set_level(logging.DEBUG)


@pytest.fixture
def config():
    config = confuse.Configuration("regstatd", "regstatd.service", read=False)
    config.read(user=False)
    config["endpoint"]["address"].set("127.0.0.1")
    config["endpoint"]["port"].set(0)
    config["prometheus"]["address"].set("127.0.0.1")
    config["prometheus"]["port"].set(0)
    config["storage"]["backend"].set("memory")
    return config


@pytest.fixture
def store():
    return MemoryRepositoryStore()


@pytest.fixture
def intake(store):
    return EnvelopeIntake(store)


@pytest.fixture
def metrics():
    return EventMetrics()


def _make_event(
    action="push",
    repository="library/test",
    actor="test-actor",
    timestamp=T1,
    media_type=MANIFEST_MEDIA_TYPE,
):
    return RegistryEvent(
        action=EventAction(action),
        media_type=media_type,
        repository=repository,
        actor=actor,
        timestamp=timestamp,
        raw_action=action,
    )


def _make_payload(
    action="push",
    repository="library/test",
    actor="test-actor",
    timestamp="2006-01-02T15:04:05Z",
    media_type=MANIFEST_MEDIA_TYPE,
):
    return {
        "id": "asdf-asdf-asdf-asdf-0",
        "timestamp": timestamp,
        "action": action,
        "target": {
            "mediaType": media_type,
            "size": 1,
            "digest": "sha256:0123456789abcdef0",
            "length": 1,
            "repository": repository,
            "url": f"http://example.com/v2/{repository}/manifests/latest",
        },
        "request": {
            "id": "asdfasdf",
            "addr": "client.local",
            "host": "registrycluster.local",
            "method": "PUT",
            "useragent": "test/0.1",
        },
        "actor": {"name": actor},
        "source": {"addr": "hostname.local:port"},
    }


@pytest.fixture
def make_event():
    return _make_event


@pytest.fixture
def make_payload():
    return _make_payload
