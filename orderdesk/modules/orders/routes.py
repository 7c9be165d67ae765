"""
Orders Admin Routes
===================

CRUD actions for orders and their line items.

Orders being created live in the session as a draft until the create form
is submitted; every item change is written back to wherever the order
lives (session for drafts, database for saved orders).
"""

import logging

import requests
from flask import (
    abort, current_app, flash, make_response, redirect, render_template, request, url_for
)

from orderdesk.core import LoggingService, db, db_log, get_config_value
from orderdesk.modules.dashboard import admin_required
from . import orders_bp
from .models import MAX_INTEGER, Order, STATUSES
from .search import OrderSearch

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _extension():
    return current_app.extensions['orderdesk']


def _draft_key():
    return get_config_value('ORDERDESK_DRAFT_SESSION_KEY', 'new_order')


def is_ajax():
    return request.headers.get('X-Requested-With') == 'XMLHttpRequest'


def _int_value(values, name, default):
    """Integer request parameter; malformed values are a 400"""
    raw = values.get(name)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        abort(400, description=f"Invalid value for {name}")


def _flag(value):
    return value not in (None, '', '0', 'false')


def find_model(order_id):
    """Order by primary key, or 404"""
    order = db.session.get(Order, order_id)
    if order is None:
        abort(404, description='The requested order does not exist.')
    return order


def find_offer(offer_id):
    offer = _extension().offer_manager.find_offer_by_id(offer_id)
    if offer is None:
        abort(404, description='The requested offer does not exist.')
    return offer


def find_order_item(order, item_id):
    item = order.get_item(item_id)
    if item is None:
        abort(404, description='The requested order item does not exist.')
    return item


def get_new_order(clear=False):
    """The draft order held in the session; `clear` starts a fresh one"""
    if clear:
        order = Order()
        update_order(order)
        return order
    return Order.get_from_session(_draft_key())


def get_order(order_id):
    """Saved order when an id is given, otherwise the session draft"""
    if order_id:
        return find_model(order_id)
    return get_new_order()


def update_order(order):
    """Write the order back to where it lives"""
    if order.is_new_record:
        order.save_to_session(_draft_key())
    else:
        db.session.commit()


def render_items(order):
    context = dict(order=order, items=order.get_items())
    if is_ajax():
        return render_template('orders/_items.html', **context)
    return render_template('orders/items.html', **context)


def _items_response(order, order_id):
    if is_ajax():
        return render_items(order)
    return redirect(url_for('orders_admin.items', order_id=order_id))


def _flash_errors(errors):
    for message in errors.values():
        flash(message, 'error')


@orders_bp.errorhandler(requests.RequestException)
def offer_catalog_unavailable(error):
    LoggingService.log_error_with_traceback('orders', error, {'path': request.path})
    return 'The offer catalog is currently unavailable.', 502


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@orders_bp.route('/')
@admin_required
def index():
    """Lists all orders"""
    search = OrderSearch(per_page=get_config_value('ORDERDESK_PER_PAGE', 20))
    pagination = search.search(request.args)
    return render_template('orders/index.html',
                           search=search,
                           pagination=pagination,
                           statuses=STATUSES)


@orders_bp.route('/<int:order_id>')
@admin_required
def view(order_id):
    """Displays a single order"""
    order = find_model(order_id)
    return render_template('orders/view.html', order=order, items=order.get_items())


@orders_bp.route('/create', methods=['GET', 'POST'])
@admin_required
def create():
    """
    Creates a new order.

    A plain GET starts a fresh draft; items are added to the draft
    asynchronously, and the form POST saves it to the database.
    """
    order = get_new_order(clear=not is_ajax() and request.method != 'POST')
    errors = {}

    if request.method == 'POST' and order.load(request.form):
        errors = order.save()
        if not errors:
            Order.clear_session(_draft_key())
            LoggingService.log_user_action('orders', 'order created', details={
                'order_id': order.id, 'items': len(order.items), 'total': order.total
            })
            flash('Order was created', 'success')
            return redirect(url_for('orders_admin.view', order_id=order.id))

        update_order(order)
        _flash_errors(errors)

    return render_template('orders/create.html',
                           order=order,
                           items=order.get_items(),
                           errors=errors,
                           statuses=STATUSES), 400 if errors else 200


@orders_bp.route('/<int:order_id>/update', methods=['GET', 'POST'])
@admin_required
def update(order_id):
    """Updates an existing order"""
    order = find_model(order_id)
    errors = {}

    if request.method == 'POST' and order.load(request.form):
        errors = order.save()
        if not errors:
            LoggingService.log_user_action('orders', 'order updated', details={'order_id': order.id})
            flash('Order was updated', 'success')
        else:
            _flash_errors(errors)

    return render_template('orders/update.html',
                           order=order,
                           items=order.get_items(),
                           errors=errors,
                           statuses=STATUSES), 400 if errors else 200


@orders_bp.route('/<int:order_id>/delete', methods=['POST'])
@admin_required
def delete(order_id):
    """Deletes an existing order together with its items"""
    order = find_model(order_id)
    db.session.delete(order)
    db.session.commit()

    LoggingService.log_user_action('orders', 'order deleted', details={'order_id': order_id})
    flash(f'Order {order_id} was deleted', 'success')
    return redirect(url_for('orders_admin.index'))


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

@orders_bp.route('/offer-search')
@admin_required
def offer_search():
    """Offer picker fragment embedded in the create/update pages"""
    order_id = _int_value(request.args, 'order_id', 0)
    manager = _extension().offer_manager

    offers = manager.get_offer_data_provider(request.args)
    return render_template('orders/_offer_search.html',
                           offers=offers,
                           search=manager.get_search_model(),
                           order_id=order_id)


@orders_bp.route('/items')
@admin_required
def items():
    """Items of an order (the draft when no order_id is given)"""
    order = get_order(_int_value(request.args, 'order_id', 0))
    return render_items(order)


@orders_bp.route('/add-item', methods=['POST'])
@admin_required
def add_item():
    """Adds an offer to the order, priced with the order's extra rate"""
    order_id = _int_value(request.values, 'order_id', 0)
    amount = _int_value(request.values, 'amount', 1)
    if not 1 <= amount <= MAX_INTEGER:
        abort(400, description=f'Amount must be between 1 and {MAX_INTEGER}')

    order = get_order(order_id)
    offer = find_offer(request.values.get('offer_id'))

    calculator = _extension().price_calculator
    item = Order.create_item()
    try:
        calculator.with_extra_rate(lambda: item.set_offer(offer, calculator), order.get_extra_rate())
    except OverflowError:
        abort(400, description='Priced item is out of range')
    if not 0 <= item.price <= MAX_INTEGER:
        abort(400, description='Priced item is out of range')
    item.amount = amount

    order.add_item(item)
    update_order(order)

    logger.info("Added offer %s x%s to order %s", offer.id, amount, order.order_number)
    return _items_response(order, order_id)


@orders_bp.route('/edit-item', methods=['GET', 'POST'])
@admin_required
def edit_item():
    """Edits amount and unit price of one item"""
    order_id = _int_value(request.args, 'order_id', 0)
    order = get_order(order_id)
    item = find_order_item(order, request.args.get('id'))
    errors = {}

    if request.method == 'POST':
        try:
            amount = int(request.form.get('amount', item.amount))
            if not 1 <= amount <= MAX_INTEGER:
                raise ValueError
        except (TypeError, ValueError):
            errors['amount'] = f'Amount must be a whole number from 1 to {MAX_INTEGER}'

        price_str = request.form.get('price', '').strip()
        price = item.price
        if price_str:
            try:
                price = int(round(float(price_str) * 100))
                if not 0 <= price <= MAX_INTEGER:
                    raise ValueError
            except (ValueError, OverflowError):
                errors['price'] = 'Price must be a number of zero or more, within range'

        if not errors:
            item.amount = amount
            item.price = price
            update_order(order)
            if order_id:
                db_log('info', 'orders', 'Order item edited', {
                    'order_id': order_id, 'item_id': item.key, 'amount': amount, 'price': price
                })
            else:
                logger.info("Edited draft item %s", item.key)
            return _items_response(order, order_id)

    template = 'orders/_edit_item.html' if is_ajax() else 'orders/edit_item.html'
    response = make_response(render_template(template,
                                             order=order,
                                             order_id=order_id,
                                             item=item,
                                             errors=errors), 400 if errors else 200)
    if errors and is_ajax():
        # failed edits re-render in the editor, not the item list
        response.headers['X-Target'] = '#item-editor'
    return response


@orders_bp.route('/delete-item', methods=['POST'])
@admin_required
def delete_item():
    """Removes one item from the order"""
    order_id = _int_value(request.values, 'order_id', 0)
    order = get_order(order_id)
    item = find_order_item(order, request.values.get('item_id'))

    order.remove_item(item)
    update_order(order)

    logger.info("Removed item %s from order %s", request.values.get('item_id'), order.order_number)
    return _items_response(order, order_id)


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------

@orders_bp.route('/utilities')
@admin_required
def utilities():
    """Utilities page; `?drop-all-orders=1` deletes every order"""
    if _flag(request.args.get('drop-all-orders')):
        orders = db.session.execute(db.select(Order)).scalars().all()
        for order in orders:
            db.session.delete(order)
            db.session.commit()

        LoggingService.log_security_event('All orders dropped', {'deleted': len(orders)})
        flash('Orders cleared', 'success')

    return render_template('orders/utilities.html')
