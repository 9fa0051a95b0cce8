"""Shared fixtures for server tests."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator

import pytest
from starlette.testclient import TestClient

from chatrelay.models import RelayConfig
from chatrelay.server.app import create_app
from chatrelay.server.state import ServerState, create_state


@pytest.fixture
def config() -> RelayConfig:
    return RelayConfig(writer_shutdown_timeout=1.0)


@pytest.fixture
def state(config: RelayConfig) -> ServerState:
    return create_state(config)


@pytest.fixture
def client(state: ServerState) -> Iterator[TestClient]:
    """In-process client sharing one event loop across all sockets."""
    with TestClient(create_app(state)) as test_client:
        yield test_client


def wait_until(predicate: Callable[[], bool], *, timeout: float = 2.0) -> None:
    """Poll *predicate* until true; the server loop runs in another thread."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not met within timeout")
        time.sleep(0.01)


@pytest.fixture
def wait_offline(state: ServerState) -> Callable[[str], None]:
    """Block until *user* is no longer registered."""

    def _wait(user: str) -> None:
        wait_until(lambda: user not in state.router.registry)

    return _wait
