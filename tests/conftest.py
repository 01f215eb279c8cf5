"""Shared fixtures: an in-process fake backend and wired components."""

from aiohttp import web
from aiohttp.test_utils import TestServer
import pytest

from atmosync.client import AtmoClient
from atmosync.config import AtmoConfig
from atmosync.device_sync import DeviceSync
from atmosync.home_sync import HomeSync
from atmosync.session import SessionManager
from atmosync.storage import MemoryIdentityStore
from atmosync.store import StateStore

from .fake_backend import HOME_ID, IDENTITY, TOKEN, FakeBackend


@pytest.fixture
async def backend():
    fake = FakeBackend()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.url = f"http://{server.host}:{server.port}"
    yield fake
    await server.close()


@pytest.fixture
async def client(backend):
    async with AtmoClient(backend.url) as atmo_client:
        yield atmo_client


@pytest.fixture
def store():
    return StateStore()


@pytest.fixture
def identity_store():
    return MemoryIdentityStore(IDENTITY)


@pytest.fixture
def session(client, identity_store, store):
    manager = SessionManager(client, identity_store, store)
    manager.ensure_identity()
    manager.credential.bearer_token = TOKEN
    return manager


@pytest.fixture
def reauth_events(session):
    events = []
    session.add_reauthorization_listener(events.append)
    return events


@pytest.fixture
def device_sync(client, session, store):
    return DeviceSync(client, session, store)


@pytest.fixture
def home_sync(client, session, store, device_sync):
    sync = HomeSync(client, session, store, device_sync, AtmoConfig().slot_rules)
    sync.home_id = HOME_ID
    return sync
