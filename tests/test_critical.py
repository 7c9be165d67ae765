"""
Critical Integration Tests for OrderDesk
========================================

Focused tests covering the integration points most likely to break.
Run with: pytest tests/test_critical.py -v
"""

import os
import shutil
import tempfile
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from flask import Flask
from sqlalchemy import inspect

from orderdesk import OrderDesk
from orderdesk.core import Config, db, AppLog
from orderdesk.core.database import utcnow
from orderdesk.modules.orders import (
    CatalogOfferManager, Order, PriceCalculator, RemoteOfferManager, build_offer_manager
)
from orderdesk.modules.orders.offers import RemoteOffer

from conftest import AJAX, make_app


# ---------------------------------------------------------------------------
# 1. Extension initialisation -- OrderDesk(app) stores itself on the app
# ---------------------------------------------------------------------------

def test_extension_initialisation(app):
    ext = app.extensions["orderdesk"]
    assert isinstance(ext, OrderDesk)
    assert isinstance(ext.offer_manager, CatalogOfferManager)
    assert isinstance(ext.price_calculator, PriceCalculator)


def test_registered_modules(app):
    assert app.extensions["orderdesk"].get_registered_modules() == ["dashboard", "orders"]
    assert "admin" in app.blueprints
    assert "orders_admin" in app.blueprints


def test_init_app_factory_pattern(tmp_db_dir):
    orderdesk = OrderDesk(config={
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///" + os.path.join(tmp_db_dir, "factory.db"),
        "ORDERDESK_PER_PAGE": 5,
    })
    app = Flask(__name__)
    orderdesk.init_app(app)

    assert app.extensions["orderdesk"] is orderdesk
    assert app.config["ORDERDESK_PER_PAGE"] == 5
    assert app.config["ORDERDESK_DRAFT_SESSION_KEY"] == "new_order"


# ---------------------------------------------------------------------------
# 2. Database -- tables are created and the SQLite directory exists
# ---------------------------------------------------------------------------

def test_database_dir_creation():
    d = tempfile.mkdtemp(prefix="orderdesk-dbtest-")
    target = os.path.join(d, "sub", "databases")

    try:
        app = make_app(target)
        assert os.path.isdir(target), f"Database directory was not created at {target}"

        with app.app_context():
            tables = set(inspect(db.engine).get_table_names())
            db.engine.dispose()
        assert {"orders", "order_items", "offers", "admin_users", "app_logs"} <= tables
    finally:
        shutil.rmtree(d, ignore_errors=True)


# ---------------------------------------------------------------------------
# 3. Template context -- config and currency symbol are injected
# ---------------------------------------------------------------------------

def test_template_context_injection(app):
    with app.test_request_context("/"):
        ctx = {}
        for func in app.template_context_processors[None]:
            ctx.update(func())

    assert ctx["currency_symbol"] == "£"
    assert ctx["orderdesk_config"]["ORDERDESK_DRAFT_SESSION_KEY"] == "new_order"
    assert "ORDERDESK_OFFER_API_TOKEN" not in ctx["orderdesk_config"]


def test_money_filter_registered(app):
    money = app.jinja_env.filters["money"]
    with app.app_context():
        assert money(1250) == "£12.50"
        assert money(None) == "£0.00"


# ---------------------------------------------------------------------------
# 4. Offer manager selection
# ---------------------------------------------------------------------------

def test_build_offer_manager_remote():
    manager = build_offer_manager({
        "ORDERDESK_OFFER_MANAGER": "remote",
        "ORDERDESK_OFFER_API_URL": "https://catalog.example.com/api/",
        "ORDERDESK_OFFER_API_TOKEN": "secret",
    })
    assert isinstance(manager, RemoteOfferManager)
    assert manager.base_url == "https://catalog.example.com/api"
    assert manager.http.headers["Authorization"] == "Bearer secret"


def test_build_offer_manager_remote_requires_url():
    with pytest.raises(ValueError):
        build_offer_manager({"ORDERDESK_OFFER_MANAGER": "remote"})


def test_build_offer_manager_unknown_kind():
    with pytest.raises(ValueError):
        build_offer_manager({"ORDERDESK_OFFER_MANAGER": "spreadsheet"})


# ---------------------------------------------------------------------------
# 5. Injected collaborators are used by the item actions
# ---------------------------------------------------------------------------

def test_injected_offer_manager_and_calculator(tmp_db_dir):
    manager = MagicMock()
    manager.find_offer_by_id.return_value = RemoteOffer(id="ext-7", name="Remote Lamp", price=4000)
    calculator = PriceCalculator()

    app = make_app(tmp_db_dir, offer_manager=manager, price_calculator=calculator)
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["admin_id"] = 1

    client.get("/admin/orders/create")
    response = client.post("/admin/orders/add-item", data={"offer_id": "ext-7", "amount": "2"}, headers=AJAX)

    assert response.status_code == 200
    assert b"Remote Lamp" in response.data
    manager.find_offer_by_id.assert_called_once_with("ext-7")

    with client.session_transaction() as sess:
        item = sess["new_order"]["items"][0]
    assert item["offer_id"] == "ext-7"
    assert item["price"] == 4000
    assert item["amount"] == 2

    with app.app_context():
        db.engine.dispose()


# ---------------------------------------------------------------------------
# 6. Admin auth guard -- unauthenticated requests redirect to login
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("path", [
    "/admin/orders/",
    "/admin/orders/create",
    "/admin/orders/items",
    "/admin/orders/utilities",
    "/admin/",
])
def test_admin_auth_redirect(client, path):
    response = client.get(path, follow_redirects=False)
    assert response.status_code == 302
    assert "/admin/login" in response.headers["Location"]


def test_unauthenticated_bulk_drop_does_nothing(client, saved_order):
    response = client.get("/admin/orders/utilities?drop-all-orders=1")
    assert response.status_code == 302
    assert db.session.execute(db.select(db.func.count(Order.id))).scalar_one() == 1


# ---------------------------------------------------------------------------
# 7. Persistent log -- order actions are recorded
# ---------------------------------------------------------------------------

def test_order_delete_is_logged(admin_client, saved_order):
    order_id = saved_order.id
    admin_client.post(f"/admin/orders/{order_id}/delete")

    entries = db.session.execute(
        db.select(AppLog).where(AppLog.source == "orders").order_by(AppLog.id)
    ).scalars().all()
    assert any("order deleted" in entry.message for entry in entries)
    assert entries[-1].request_path == f"/admin/orders/{order_id}/delete"
    assert entries[-1].user_id == "1"


# ---------------------------------------------------------------------------
# 8. Config and timestamps
# ---------------------------------------------------------------------------

def test_config_has_no_server_settings():
    assert not hasattr(Config, "port")
    assert Config.ORDERS_TABLE == "orders"


def test_utcnow_is_naive_utc():
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    stamp = utcnow()
    assert stamp.tzinfo is None
    assert abs((stamp - before).total_seconds()) < 5


def test_saved_order_timestamps(admin_client, saved_order):
    assert saved_order.created_at is not None
    assert saved_order.created_at.tzinfo is None
