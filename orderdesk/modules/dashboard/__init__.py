"""
Dashboard Module
================

Admin dashboard interface for OrderDesk.

Provides core admin functionality:
- Admin authentication (login/logout)
- Admin user creation
- The `admin_required` guard used by the other admin modules

This is the foundation module that the orders admin plugs into.
"""

from flask import Blueprint

# Note: Blueprint name is 'admin' so other modules can redirect to 'admin.login'
dashboard_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin',
    template_folder='templates'
)

# Import routes after blueprint is created
from . import routes
from .auth import admin_required

__all__ = ['dashboard_bp', 'admin_required']
