"""
Centralized logging service for the OrderDesk admin.
Provides structured logging with database storage and easy integration.
"""

import json
import logging
import traceback
from datetime import datetime, timedelta

from flask import request, has_request_context, session

from .config import Config
from .database import db

console = logging.getLogger('orderdesk')


class AppLog(db.Model):
    __tablename__ = Config.LOGS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.String(32), nullable=False, index=True)
    level = db.Column(db.String(16), nullable=False, index=True)
    source = db.Column(db.String(64), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    details = db.Column(db.Text)
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(255))
    request_path = db.Column(db.String(255))
    user_id = db.Column(db.String(64))


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        try:
            ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
            if ip_address and ',' in ip_address:
                ip_address = ip_address.split(',')[0].strip()

            user_agent = request.headers.get('User-Agent', '')
            request_path = request.path

            return ip_address, user_agent, request_path
        except Exception:
            return None, None, None

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Writes on a dedicated connection so the caller's ORM session is never
        committed or rolled back as a side effect.

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (orders, admin, system, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier, defaults to the logged-in admin
        """
        level = level.upper()
        console.log(getattr(logging, level, logging.INFO), "[%s] %s", source, message)

        try:
            ip_address, user_agent, request_path = LoggingService._get_request_context()

            if user_id is None and has_request_context():
                user_id = session.get('admin_id')

            if isinstance(details, dict):
                details = json.dumps(details, indent=2, default=str)

            with db.engine.begin() as conn:
                conn.execute(AppLog.__table__.insert().values(
                    timestamp=datetime.now().isoformat(),
                    level=level,
                    source=source,
                    message=message,
                    details=details,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    request_path=request_path,
                    user_id=str(user_id) if user_id is not None else None,
                ))

        except Exception as e:
            # Fallback to console logging if database fails
            if details:
                console.info("Details: %s", details)
            console.warning("Logging service error: %s", e)

    @staticmethod
    def debug(source, message, details=None, user_id=None):
        """Log debug message"""
        LoggingService.log('DEBUG', source, message, details, user_id)

    @staticmethod
    def info(source, message, details=None, user_id=None):
        """Log info message"""
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def warning(source, message, details=None, user_id=None):
        """Log warning message"""
        LoggingService.log('WARNING', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        """Log error message"""
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_user_action(source, action, user_id=None, details=None):
        """Log admin actions (order created, order deleted, ...)"""
        LoggingService.info(source, f"User action: {action}", details, user_id)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def log_security_event(message, details=None):
        """Log security-related events (failed logins, destructive bulk actions)"""
        LoggingService.warning('security', message, details)

    @staticmethod
    def get_recent(limit=50, source=None):
        """Most recent log entries, newest first"""
        query = db.select(AppLog).order_by(AppLog.id.desc()).limit(limit)
        if source:
            query = query.where(AppLog.source == source)
        return db.session.execute(query).scalars().all()

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()

        try:
            with db.engine.begin() as conn:
                result = conn.execute(
                    AppLog.__table__.delete().where(AppLog.timestamp < cutoff_iso)
                )
                deleted_count = result.rowcount

            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count

        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Short helper used by modules: db_log('info', 'orders', 'Order created', {...})"""
    LoggingService.log(level, source, message, details)

