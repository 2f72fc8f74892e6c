"""Pytest fixtures — fresh SQLite database per test, TestClient wired to it."""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from mashriq.database import Base, get_db
from mashriq.main import app

# Import all models so they register with Base.metadata
from mashriq.models.user import User, UserRole             # noqa: F401
from mashriq.models.service import Service                 # noqa: F401
from mashriq.models.order import Order                     # noqa: F401
from mashriq.models.order_event import OrderEvent          # noqa: F401
from mashriq.models.wallet import Wallet, WalletHold, LedgerEntry  # noqa: F401
from mashriq.models.review import Review                   # noqa: F401
from mashriq.services import escrow_service
from mashriq.services.actor import Actor, ActorRole


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Service-level helpers: build users, listings and funded wallets directly
# ---------------------------------------------------------------------------
def make_user(db, name: str, role: UserRole = UserRole.user, balance: int = 0) -> User:
    user = User(display_name=name, role=role)
    db.add(user)
    db.flush()
    escrow_service.create_wallet(db, user.user_id)
    db.commit()
    if balance:
        escrow_service.deposit(db, user.user_id, balance)
    return user


def make_service(db, seller: User, price: int = 100, delivery_days: int = 3, revisions: int = 1) -> Service:
    service = Service(
        seller_id=seller.user_id,
        title="Logo design",
        price=price,
        delivery_days=delivery_days,
        revisions_included=revisions,
    )
    db.add(service)
    db.commit()
    return service


def actor(user: User) -> Actor:
    role = ActorRole.admin if user.role == UserRole.admin else ActorRole.user
    return Actor(actor_id=user.user_id, role=role)


@pytest.fixture
def parties(db):
    """Buyer funded with 500, a seller with a 100-unit listing, and an admin."""
    buyer = make_user(db, "Buyer", balance=500)
    seller = make_user(db, "Seller")
    admin = make_user(db, "Admin", role=UserRole.admin)
    service = make_service(db, seller, price=100, revisions=1)
    return buyer, seller, admin, service


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User", role: str = "user") -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={"display_name": name, "role": role})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_service(client: TestClient, seller_id: str, price: int = 100, revisions: int = 1) -> dict:
    """Helper — POST /api/services and return response JSON."""
    resp = client.post("/api/services/", json={
        "seller_id": seller_id,
        "title": "Translate a document",
        "price": price,
        "delivery_days": 2,
        "revisions_included": revisions,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def fund(client: TestClient, user_id: str, amount: int) -> dict:
    resp = client.post(f"/api/wallets/{user_id}/deposit", json={"amount": amount})
    assert resp.status_code == 200, resp.text
    return resp.json()
