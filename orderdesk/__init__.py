"""
OrderDesk - Order Management for Flask Admin Panels
===================================================

A Flask extension providing an admin interface for e-commerce orders:
- Order listing, search, view, create (draft-then-save), update and delete
- Line items priced from an offer catalog with a per-order extra rate
- Admin authentication and session management
- Persistent application log

Usage:
    from orderdesk import OrderDesk

    app = Flask(__name__)
    orderdesk = OrderDesk(app)

    # or with an app factory
    orderdesk = OrderDesk()
    orderdesk.init_app(app)
"""

__version__ = '0.1.0'

import logging
import os

from .core import Config, db
from .core.database import init_tables
from .modules.dashboard import dashboard_bp
from .modules.orders import orders_bp, build_offer_manager, PriceCalculator

logger = logging.getLogger(__name__)

# app.config keys and their defaults, taken from Config (environment)
CONFIG_DEFAULTS = {
    'SECRET_KEY': Config.SECRET_KEY,
    'SQLALCHEMY_DATABASE_URI': Config.DATABASE_URL,
    'ORDERDESK_PER_PAGE': Config.ORDERDESK_PER_PAGE,
    'ORDERDESK_OFFERS_PER_PAGE': Config.ORDERDESK_OFFERS_PER_PAGE,
    'ORDERDESK_DRAFT_SESSION_KEY': Config.ORDERDESK_DRAFT_SESSION_KEY,
    'ORDERDESK_CURRENCY_SYMBOL': Config.ORDERDESK_CURRENCY_SYMBOL,
    'ORDERDESK_CREATE_TABLES': Config.ORDERDESK_CREATE_TABLES,
    'ORDERDESK_OFFER_MANAGER': Config.ORDERDESK_OFFER_MANAGER,
    'ORDERDESK_OFFER_API_URL': Config.ORDERDESK_OFFER_API_URL,
    'ORDERDESK_OFFER_API_TOKEN': Config.ORDERDESK_OFFER_API_TOKEN,
    'ORDERDESK_OFFER_API_TIMEOUT': Config.ORDERDESK_OFFER_API_TIMEOUT,
}


class OrderDesk:
    """
    Flask extension wiring the OrderDesk blueprints, database and collaborators.

    Args:
        app: Flask app (optional, see init_app)
        config: dict of app.config overrides applied before defaults
        offer_manager: object used to look up and search offers; built from
            ORDERDESK_OFFER_MANAGER when omitted
        price_calculator: prices new items; a PriceCalculator when omitted
    """

    def __init__(self, app=None, config=None, offer_manager=None, price_calculator=None):
        self._config = config or {}
        self.offer_manager = offer_manager
        self.price_calculator = price_calculator
        self._registered_modules = []

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        for key, value in self._config.items():
            app.config[key] = value
        for key, value in CONFIG_DEFAULTS.items():
            if app.config.get(key) is None:
                app.config[key] = value

        self._setup_database_dir(app)
        db.init_app(app)

        if self.offer_manager is None:
            self.offer_manager = build_offer_manager(app.config)
        if self.price_calculator is None:
            self.price_calculator = PriceCalculator()

        self._register_module(app, 'dashboard', dashboard_bp)
        self._register_module(app, 'orders', orders_bp)

        @app.context_processor
        def inject_orderdesk_config():
            return dict(
                orderdesk_config={
                    key: app.config.get(key) for key in CONFIG_DEFAULTS
                    if key.startswith('ORDERDESK_') and 'TOKEN' not in key
                },
                currency_symbol=app.config.get('ORDERDESK_CURRENCY_SYMBOL', '£'),
            )

        app.extensions['orderdesk'] = self

        if app.config.get('ORDERDESK_CREATE_TABLES'):
            with app.app_context():
                init_tables()

        logger.info("OrderDesk initialised with modules: %s", ', '.join(self._registered_modules))

    def _setup_database_dir(self, app):
        """Create the directory of a file-based SQLite database"""
        uri = app.config.get('SQLALCHEMY_DATABASE_URI') or ''
        if uri.startswith('sqlite:///') and uri != 'sqlite:///:memory:':
            directory = os.path.dirname(uri[len('sqlite:///'):])
            if directory:
                os.makedirs(directory, exist_ok=True)

    def _register_module(self, app, name, blueprint):
        if blueprint.name in app.blueprints:
            return
        app.register_blueprint(blueprint)
        self._registered_modules.append(name)

    def get_registered_modules(self):
        return list(self._registered_modules)


__all__ = ['OrderDesk', 'db', '__version__']
