import logfire
import pytest
from fastapi.testclient import TestClient

from mock_service import FakeSupabaseClient, seed_catalog

from storefront.app.api.deps import get_anon_client, get_service_client
from storefront.core.security.admin_auth import get_admin_client, get_websocket_admin_client
from storefront.main import app

logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def fake():
    return FakeSupabaseClient()


@pytest.fixture
def seeded(fake):
    return seed_catalog(fake)


@pytest.fixture
def api(fake):
    app.dependency_overrides[get_service_client] = lambda: fake
    app.dependency_overrides[get_anon_client] = lambda: fake
    app.dependency_overrides[get_admin_client] = lambda: fake
    app.dependency_overrides[get_websocket_admin_client] = lambda: fake
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(fake):
    return {"Authorization": f"Bearer {fake.make_admin()}"}
