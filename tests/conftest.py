"""Shared fixtures: an in-process fake CMQ server and an Account bound to it."""

from typing import Optional

import pytest_asyncio
from aiohttp.test_utils import TestServer

from fake_server import SECRET_ID, SECRET_KEY, FakeCMQServer
from tencentcloud_cmq import Account, CMQHttp


class RecordingHttp(CMQHttp):
    """CMQHttp that remembers the timeout used for every request."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.timeouts: list[Optional[int]] = []

    async def request(self, method, url, body="", timeout_ms=None):
        self.timeouts.append(timeout_ms)
        return await super().request(method, url, body, timeout_ms)


@pytest_asyncio.fixture
async def cmq_server():
    fake = FakeCMQServer(SECRET_KEY)
    server = TestServer(fake.create_app())
    await server.start_server()
    fake.endpoint = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def http():
    transport = RecordingHttp()
    yield transport
    await transport.close()


@pytest_asyncio.fixture
async def account(cmq_server, http):
    acc = Account(SECRET_ID, SECRET_KEY, endpoint=cmq_server.endpoint, http=http)
    yield acc
    await acc.close()


@pytest_asyncio.fixture
async def queue(account, cmq_server, http):
    await account.create_queue("orders")
    cmq_server.requests.clear()
    http.timeouts.clear()
    return account.get_queue("orders")
