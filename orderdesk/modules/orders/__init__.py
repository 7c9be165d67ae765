"""
Orders Admin Module
===================

Admin interface for order management.
Plugs into the admin dashboard module.

Provides:
- Order listing and search
- Order detail view, creation (draft-then-save) and editing
- Line item management: offer search, add, edit and remove items
- Utilities page with the bulk "drop all orders" action
"""

from flask import Blueprint

orders_bp = Blueprint(
    'orders_admin',
    __name__,
    url_prefix='/admin/orders',
    template_folder='templates'
)

from . import routes
from .models import Order, OrderItem, STATUSES
from .offers import (
    Offer, OfferManager, CatalogOfferManager, RemoteOfferManager, build_offer_manager
)
from .pricing import PriceCalculator

__all__ = [
    'orders_bp', 'Order', 'OrderItem', 'STATUSES', 'Offer', 'OfferManager',
    'CatalogOfferManager', 'RemoteOfferManager', 'build_offer_manager', 'PriceCalculator',
]
