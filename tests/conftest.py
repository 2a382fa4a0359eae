import os

os.environ.setdefault("JWT_SECRET", "test-only-signing-key-0123456789abcdef")

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import database  # noqa: E402
import email_service  # noqa: E402
from auth import create_access_token, hash_password  # noqa: E402
from main import app  # noqa: E402
from schemas import Pet, Product  # noqa: E402


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["petshop_test"]
    monkeypatch.setattr(database, "db", mock_db)
    database.ensure_indexes()
    return mock_db


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing Resend payloads instead of calling the API."""
    sent = []

    def fake_send(payload):
        sent.append(payload)
        return {"id": f"email_{len(sent)}"}

    monkeypatch.setattr(email_service, "RESEND_API_KEY", "re_test_key")
    monkeypatch.setattr(email_service, "EMAIL", "store@example.com")
    monkeypatch.setattr(email_service.resend.Emails, "send", fake_send)
    return sent


def make_user(db, email, role="user", name=None, password="secret123"):
    doc = {
        "email": email,
        "password": hash_password(password),
        "name": name,
        "role": role,
        "addresses": [],
        "created_at": database.utcnow(),
        "updated_at": database.utcnow(),
    }
    doc["_id"] = db.user.insert_one(doc).inserted_id
    token = create_access_token(doc)
    return doc, {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(db):
    return make_user(db, "shopper@example.com", name="Shopper")


@pytest.fixture
def user_headers(user):
    return user[1]


@pytest.fixture
def admin_headers(db):
    return make_user(db, "admin@example.com", role="admin", name="Admin")[1]


@pytest.fixture
def add_product(db):
    def _add(name="Chew Toy", price=10.0, stock=5, category="toys", **extra):
        product = Product(name=name, price=price, stock=stock, category=category, **extra)
        return database.create_document("product", product)
    return _add


@pytest.fixture
def add_pet(db):
    def _add(name="Rex", **extra):
        fields = {
            "category": "dog",
            "type": "Labrador",
            "age": "2 years",
            "color": "Golden",
            "gender": "Male",
            "size": "Large",
            "weight": 30,
            "price": 500,
            "location": "Berlin",
        }
        fields.update(extra)
        return database.create_document("pet", Pet(name=name, **fields))
    return _add


@pytest.fixture
def address():
    return {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "US"}
