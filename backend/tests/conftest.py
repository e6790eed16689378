"""
Pytest fixtures for gift shop backend tests.

Provides the in-memory database, test clients, an admin with a live bearer
token, and a helper for listening on notifier rooms.
"""

import pytest
from giftshop import create_app
from giftshop.extensions import db, socketio
from giftshop.services import auth_service, order_service, session_service


ASHA_CHECKOUT = {
    "customer_name": "Asha",
    "customer_email": "a@x.com",
    "customer_phone": "999",
    "address_line1": "12 Lane",
    "city": "Pune",
    "state": "MH",
    "zip_code": "411001",
    "total": 4599,
    "items": [{"id": 1, "name": "Rose Gold Necklace", "price": 4599, "quantity": 1}],
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'REALTIME_ADMIN_AUTH': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database (and an empty notifier) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.extensions["notifier"].reset()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        app.extensions["notifier"].reset()


@pytest.fixture(scope='function')
def notifier(app, db_session):
    return app.extensions["notifier"]


@pytest.fixture(scope='function')
def socket_client(app, db_session):
    """Socket.IO test client, disconnected after the test."""
    sc = socketio.test_client(app)
    yield sc
    if sc.is_connected():
        sc.disconnect()


class CollectingSubscriber:
    """In-memory subscriber that records every delivered event."""

    def __init__(self, key: str):
        self.key = key
        self.events = []

    def deliver(self, event):
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.type for e in self.events]


@pytest.fixture(scope='function')
def listen(notifier):
    """
    Connect a collecting subscriber and join it to the given rooms.

        sub = listen("admin-console", "admin_room")
    """
    def _listen(key: str, *rooms: str) -> CollectingSubscriber:
        sub = CollectingSubscriber(key)
        notifier.connect(sub)
        for room in rooms:
            notifier.join(key, room)
        return sub

    return _listen


@pytest.fixture(scope='function')
def order(db_session):
    """A freshly placed order for Asha."""
    return order_service.create_order(dict(ASHA_CHECKOUT))


@pytest.fixture(scope='function')
def admin(db_session):
    """Admin account (cheap bcrypt cost for speed)."""
    return auth_service.create_admin("pinkbearsadmin", "Password123!", rounds=4)


@pytest.fixture(scope='function')
def admin_token(admin):
    _session, token = session_service.create_session(admin.id)
    return token


@pytest.fixture(scope='function')
def admin_headers(admin_token):
    return auth_headers(admin_token)


@pytest.fixture(scope='function')
def checkout_payload():
    """Asha's checkout with selected fields replaced (None removes a field)."""
    def _payload(**overrides) -> dict:
        payload = dict(ASHA_CHECKOUT)
        for key, value in overrides.items():
            if value is None:
                payload.pop(key, None)
            else:
                payload[key] = value
        return payload

    return _payload


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
