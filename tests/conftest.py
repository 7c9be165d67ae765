"""
Shared fixtures for the OrderDesk test suite.

pytest-flask picks up the `app` fixture below and provides `client`.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

import pytest
from flask import Flask

from orderdesk import OrderDesk
from orderdesk.core import db
from orderdesk.modules.orders import Offer, Order, OrderItem


def make_app(db_dir, **kwargs):
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(db_dir, "orders.db")
    app.config["ORDERDESK_OFFER_MANAGER"] = "catalog"
    OrderDesk(app, **kwargs)
    return app


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="orderdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Flask app with OrderDesk initialised on a throwaway SQLite file."""
    app = make_app(tmp_db_dir)
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def admin_client(client):
    """Test client with a logged-in admin session."""
    with client.session_transaction() as sess:
        sess["admin_id"] = 1
        sess["admin_email"] = "admin@example.com"
    return client


@pytest.fixture
def offers(app):
    rows = [
        Offer(name="Coffee Mug", sku="MUG-01", price=1000),
        Offer(name="Poster A2", sku="POS-A2", price=2550),
        Offer(name="Retired Tote", sku="TOTE-01", price=800, is_active=False),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


@pytest.fixture
def saved_order(app, offers):
    order = Order(customer_name="Ada Lovelace", customer_email="ada@example.com", extra_rate=10)
    order.items.append(OrderItem(
        offer_id=str(offers[0].id), offer_name=offers[0].name, amount=2, price=1100
    ))
    db.session.add(order)
    db.session.commit()
    return order


AJAX = {"X-Requested-With": "XMLHttpRequest"}


def read_draft(client, key="new_order"):
    with client.session_transaction() as sess:
        return sess.get(key)
