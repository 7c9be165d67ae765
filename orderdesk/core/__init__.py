"""
OrderDesk Core
==============

Core utilities and shared functionality for OrderDesk modules.
"""

from .config import Config, get_config_value
from .database import db
from .logging_service import AppLog, LoggingService, db_log

__all__ = ['Config', 'get_config_value', 'db', 'AppLog', 'LoggingService', 'db_log']
