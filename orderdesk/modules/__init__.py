"""
OrderDesk Modules
=================

Flask blueprint modules for the admin panel.
"""

__all__ = ['dashboard', 'orders']
