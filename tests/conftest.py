import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the configuration environment and keep background maintenance
    tasks off; tests drive the sweeper and reaper by hand.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["ORDERING_SCHEDULER_ENABLED"] = "false"


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def fake_gateway():
    """Install a retrying FakeGateway with no backoff and hand back the fake."""
    from payments.gateway import reset_gateway, set_gateway
    from payments.gateway.fake_adapter import FakeGateway
    from payments.gateway.retrying import RetryingGateway

    gateway = FakeGateway()
    set_gateway(RetryingGateway(gateway, max_attempts=3, initial_backoff=0, max_backoff=0))
    yield gateway
    reset_gateway()


@pytest.fixture(autouse=True)
def fake_dispatcher():
    from notifications.channel import reset_channels
    from notifications.dispatcher import reset_dispatcher, set_dispatcher
    from notifications.dispatcher.fake import FakeNotificationDispatcher

    dispatcher = FakeNotificationDispatcher()
    set_dispatcher(dispatcher)
    yield dispatcher
    reset_dispatcher()
    reset_channels()


@pytest.fixture(autouse=True)
def _fresh_settings():
    from ordering.config import reset_settings

    reset_settings()
    yield
    reset_settings()
