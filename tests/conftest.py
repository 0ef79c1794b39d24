# tests/conftest.py
import os
import sys
import pytest

# чтобы import create_app работал при запуске из корня
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app
from errors import StoreError
from ledger import KeyLedger
from storage import MemoryBlobStore


@pytest.fixture()
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SEED_DEMO_DATA": False,
        "SECRET_KEY": "test-secret",     # чтобы не ругался Flask-Login/сессии
    })
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def app_ledger(app):
    """Ledger of the test app (SQL-backed store)."""
    return app.extensions["key_ledger"]


def populate(ledger: KeyLedger) -> KeyLedger:
    ledger.add_user(name="Администратор", login="admin", password="admin", role="admin")
    ledger.add_user(name="Ivan Petrov", login="ipetrov", password="user123", card_code="EMP001")
    ledger.add_user(name="Anna Sidorova", login="asidorova", password="pass456", card_code="EMP002")
    ledger.toggle_user(ledger.directory.find_by_login("asidorova").id)
    ledger.add_key(name="Офис 101", barcode="123456789", location="1 этаж")
    return ledger


@pytest.fixture()
def ledger():
    """Ledger over an in-memory store with an admin, an active and an inactive employee, one key."""
    return populate(KeyLedger(MemoryBlobStore()))


@pytest.fixture()
def seeded(app, app_ledger):
    with app.app_context():
        return populate(app_ledger)


class FlakyStore(MemoryBlobStore):
    """Memory store whose writes can be switched off."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def save_many(self, collections: dict) -> None:
        if self.fail_writes:
            raise StoreError(collections=sorted(collections))
        super().save_many(collections)


@pytest.fixture()
def flaky_ledger():
    return populate(KeyLedger(FlakyStore()))


def login(client, login_name: str, password: str):
    return client.post("/auth/login", json={"login": login_name, "password": password})


@pytest.fixture()
def admin_client(client, seeded):
    resp = login(client, "admin", "admin")
    assert resp.status_code == 200
    return client


@pytest.fixture()
def user_client(client, seeded):
    resp = login(client, "ipetrov", "user123")
    assert resp.status_code == 200
    return client
