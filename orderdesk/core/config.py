import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for the OrderDesk admin.
    Projects should provide the database URL via environment variables.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    DATABASE_URL = os.getenv('DATABASE_URL') or 'sqlite:///' + os.path.join(DB_DIR, 'orders.db')

    # Order admin settings
    ORDERDESK_PER_PAGE = int(os.getenv('ORDERDESK_PER_PAGE', '20'))
    ORDERDESK_OFFERS_PER_PAGE = int(os.getenv('ORDERDESK_OFFERS_PER_PAGE', '10'))
    ORDERDESK_DRAFT_SESSION_KEY = os.getenv('ORDERDESK_DRAFT_SESSION_KEY', 'new_order')
    ORDERDESK_CURRENCY_SYMBOL = os.getenv('ORDERDESK_CURRENCY_SYMBOL', '£')
    ORDERDESK_CREATE_TABLES = os.getenv('ORDERDESK_CREATE_TABLES', '1') not in ('0', 'false', 'False')

    # Offer catalog: 'catalog' (local offers table) or 'remote' (HTTP catalog service)
    ORDERDESK_OFFER_MANAGER = os.getenv('ORDERDESK_OFFER_MANAGER', 'catalog')
    ORDERDESK_OFFER_API_URL = os.getenv('ORDERDESK_OFFER_API_URL')
    ORDERDESK_OFFER_API_TOKEN = os.getenv('ORDERDESK_OFFER_API_TOKEN')
    ORDERDESK_OFFER_API_TIMEOUT = float(os.getenv('ORDERDESK_OFFER_API_TIMEOUT', '10'))

    # Table names
    ORDERS_TABLE = "orders"
    ORDER_ITEMS_TABLE = "order_items"
    OFFERS_TABLE = "offers"
    ADMIN_TABLE = "admin_users"
    LOGS_TABLE = "app_logs"


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
