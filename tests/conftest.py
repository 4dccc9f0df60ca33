import asyncio

import pytest
from fastapi.testclient import TestClient

from alarm_relay.common.config import Settings
from alarm_relay.common.exceptions import RemoteNotifyError
from alarm_relay.main import create_app


class FakeNotifier:
    """Records remote commands; commands listed in `failing` raise."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []
        self.closed = False

    async def _send(self, command):
        self.calls.append(command)
        if command in self.failing:
            raise RemoteNotifyError(command, "connection refused")

    async def notify_arm(self):
        await self._send("arm")

    async def notify_disarm(self):
        await self._send("disarm")

    async def notify_stop(self):
        await self._send("stop")

    async def close(self):
        self.closed = True


class BlockingNotifier(FakeNotifier):
    """Holds the `block` command open until `release` is set."""

    def __init__(self, block, failing=()):
        super().__init__(failing)
        self.block = block
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def _send(self, command):
        if command == self.block:
            self.started.set()
            await self.release.wait()
        await super()._send(command)


@pytest.fixture
def make_notifier():
    def factory(failing=()):
        return FakeNotifier(failing)
    return factory


@pytest.fixture
def make_blocking_notifier():
    def factory(block, failing=()):
        return BlockingNotifier(block, failing)
    return factory


@pytest.fixture
def settings(tmp_path):
    return Settings(
        remote_device_url="http://device.test",
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def notifier(make_notifier):
    return make_notifier()


@pytest.fixture
def client(settings, notifier):
    app = create_app(settings, notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client
