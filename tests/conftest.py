"""
Shared fixtures: a fresh app on a temporary SQLite file per test, plus
clients signed in as the seeded admin or as a plain user.
"""

import pytest

from devtrack.app import create_app
from devtrack.core.database import cleanup_all_pools
from devtrack.modules.auth.models import create_user
from devtrack.modules.devices import models

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "secret123"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "DATABASE": str(tmp_path / "devtrack-test.sqlite"),
        "ADMIN_USERNAME": ADMIN_USERNAME,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
    })
    yield app
    cleanup_all_pools()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, username, password):
    return client.post("/auth/login", data={"username": username, "password": password})


@pytest.fixture
def admin_client(client):
    login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    return client


@pytest.fixture
def user_client(app):
    create_user("staff", "staffpass")
    c = app.test_client()
    login(c, "staff", "staffpass")
    return c


@pytest.fixture
def make_device(app):
    """Insert a device row directly, bypassing allocation."""

    def _make(kode_id, tanggal_beli="2024-03-01", **fields):
        parts = kode_id.split("-")
        data = {
            "kode_id": kode_id,
            "kode_item": parts[1] if len(parts) > 1 else "01",
            "jenis_barang": "Monitor",
            "tanggal_beli": tanggal_beli,
            "lokasi": "Lantai 2",
            "devisi": "IT",
            "merk": "Dell",
            "type": "P2422H",
            "status": "Aktif",
            "kondisi": "Baik",
        }
        data.update(fields)
        return models.insert_device(data)

    return _make


@pytest.fixture
def device_form():
    return {
        "kode_item": "01",
        "tanggal_beli": "2024-03-10",
        "garansi": "12",
        "lokasi": "Lantai 3",
        "devisi": "IT",
        "sub_devisi": "Support",
        "merk": "LG",
        "type": "24MK600",
        "sn_reg_model": "SN-123",
        "status": "Aktif",
        "kondisi": "Baik",
    }
