"""
Admin Dashboard Routes
======================

Authentication and landing page for admin users.
"""

import logging

from flask import render_template, request, redirect, url_for, flash, session

from orderdesk.core import LoggingService, db
from . import dashboard_bp
from .auth import AdminUser, admin_required

logger = logging.getLogger(__name__)


def _safe_next(target):
    """Only follow local redirect targets"""
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return None


@dashboard_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Admin login route"""
    if request.method == 'POST':
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')

        if not email or not password:
            flash('Please enter both email and password', 'error')
            return render_template('dashboard/login.html'), 400

        admin = AdminUser.find_by_email(email)
        if admin and admin.check_password(password):
            session['admin_id'] = admin.id
            session['admin_email'] = admin.email
            flash('Login successful', 'success')

            next_page = _safe_next(request.args.get('next'))
            return redirect(next_page or url_for('admin.dashboard'))

        LoggingService.log_security_event('Failed admin login', {'email': email})
        flash('Invalid email or password', 'error')

    return render_template('dashboard/login.html')


@dashboard_bp.route('/logout')
def logout():
    """Admin logout route"""
    admin_email = session.get('admin_email', 'Unknown')
    session.pop('admin_id', None)
    session.pop('admin_email', None)
    logger.info("Admin %s logged out", admin_email)
    flash('You have been logged out', 'info')
    return redirect(url_for('admin.login'))


@dashboard_bp.route('/')
@dashboard_bp.route('/dashboard')
@admin_required
def dashboard():
    """Admin landing page: order counts and recent activity"""
    from orderdesk.modules.orders.models import Order

    counts = dict(db.session.execute(
        db.select(Order.status, db.func.count(Order.id)).group_by(Order.status)
    ).all())

    return render_template('dashboard/dashboard.html',
                           status_counts=counts,
                           total_orders=sum(counts.values()),
                           recent_logs=LoggingService.get_recent(limit=20))


@dashboard_bp.route('/create-admin', methods=['GET', 'POST'])
def create_admin():
    """Create new admin (only accessible by existing admin or if no admins exist)"""
    if AdminUser.count() > 0 and 'admin_id' not in session:
        return redirect(url_for('admin.login', next=request.path))

    if request.method == 'POST':
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')
        confirm_password = request.form.get('confirm_password', '')

        if not all([email, password, confirm_password]):
            flash('All fields are required', 'error')
            return render_template('dashboard/create_admin.html'), 400

        if password != confirm_password:
            flash('Passwords do not match', 'error')
            return render_template('dashboard/create_admin.html'), 400

        if len(password) < 6:
            flash('Password must be at least 6 characters long', 'error')
            return render_template('dashboard/create_admin.html'), 400

        if AdminUser.find_by_email(email):
            flash('An admin with this email already exists', 'error')
            return render_template('dashboard/create_admin.html'), 400

        admin = AdminUser(email=email)
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()

        LoggingService.log_user_action('admin', 'admin created', details={'email': email})
        flash(f'Admin {email} created successfully', 'success')
        return redirect(url_for('admin.dashboard'))

    return render_template('dashboard/create_admin.html')


@dashboard_bp.app_template_filter('money')
def money_filter(amount):
    """Format minor currency units (pence) for display"""
    from orderdesk.core import get_config_value

    symbol = get_config_value('ORDERDESK_CURRENCY_SYMBOL', '£')
    return f"{symbol}{(amount or 0) / 100:.2f}"


@dashboard_bp.app_context_processor
def utility_processor():
    """Add utility values to every template context"""
    return dict(admin_email=session.get('admin_email'))
