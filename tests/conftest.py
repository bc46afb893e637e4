import os
import sys

import pytest
from fastapi.testclient import TestClient


def setup_test_environment():
    default_test_vars = {
        "ENVIRONMENT": "test",
        "CLOUDFLARE_API_TOKEN": "test-token",
        "CLOUDFLARE_ACCOUNT_ID": "test-account",
        "CLOUDFLARE_KV_NAMESPACE_ID": "test-namespace",
        "NOTIFICATION_API_URL": "http://localhost:8002/api/open/text",
    }
    for key, value in default_test_vars.items():
        os.environ.setdefault(key, value)


setup_test_environment()

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.app.dependencies import get_device_repository, get_kv_client  # noqa: E402
from src.app.main import app  # noqa: E402
from src.modules.device_management.repo.device_repository import DeviceRepository  # noqa: E402
from tests.factories import InMemoryKVClient, RecordingNotificationService, make_device_data  # noqa: E402


@pytest.fixture
def kv_client():
    return InMemoryKVClient()


@pytest.fixture
def notification_service():
    return RecordingNotificationService()


@pytest.fixture
def device_repository(kv_client, notification_service):
    return DeviceRepository(kv_client, notification_service, scan_concurrency=4)


@pytest.fixture
def device_data():
    return make_device_data()


@pytest.fixture
def client(kv_client, device_repository):
    """TestClient whose routes run against the in-memory namespace."""
    app.dependency_overrides[get_device_repository] = lambda: device_repository
    app.dependency_overrides[get_kv_client] = lambda: kv_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
