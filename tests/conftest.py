import os
import tempfile

# Configure before droppers.settings is imported
_TMP = tempfile.mkdtemp(prefix="droppers-tests-")
os.environ["DROPPERS_DATABASE_URL"] = f"sqlite:///{_TMP}/droppers.sqlite3"
os.environ["DROPPERS_DISTANCE_ESTIMATOR"] = "geocode"
os.environ.setdefault("DROPPERS_SECRET_KEY", "test-secret")
os.environ["DROPPERS_BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from droppers.database import Base, SessionLocal, engine
from droppers.main import app
from droppers.models import User, UserRole
from droppers.schemas import OrderCreate


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, role: UserRole, name: str = "Test User", email: str | None = None) -> User:
    user = User(
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        password_hash="not-a-real-hash",
        name=name,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def vendor(db):
    return make_user(db, UserRole.VENDOR, "Vera Vendor")


@pytest.fixture
def dropper(db):
    return make_user(db, UserRole.DELIVERY_PARTNER, "Dan Dropper")


@pytest.fixture
def other_dropper(db):
    return make_user(db, UserRole.DELIVERY_PARTNER, "Olga Dropper")


ORDER_FIELDS = {
    "pickupAddress": "12 Market Street, Springfield",
    "deliveryAddress": "742 Evergreen Terrace, Springfield",
    "customerName": "Homer Simpson",
    "customerPhone": "+1 (555) 123-4567",
    "itemDescription": "Box of donuts",
    "orderValue": 500,
}


def order_input(**overrides) -> OrderCreate:
    return OrderCreate(**{**ORDER_FIELDS, **overrides})


def register(client, role: str, email: str, name: str = "Someone", password: str = "secret123") -> tuple[str, dict]:
    resp = client.post("/api/auth/register", json={
        "email": email, "password": password, "name": name, "phone": "555-000-1111", "role": role,
    })
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    return data["token"], data["user"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def vendor_login(client):
    return register(client, "VENDOR", "shop@example.com", "Corner Shop")


@pytest.fixture
def dropper_login(client):
    return register(client, "DELIVERY_PARTNER", "rider@example.com", "Rita Rider")


@pytest.fixture
def other_dropper_login(client):
    return register(client, "DELIVERY_PARTNER", "rider2@example.com", "Rob Rider")


def create_order(client, token: str, **overrides) -> dict:
    resp = client.post("/api/orders/vendor/create", json={**ORDER_FIELDS, **overrides}, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
