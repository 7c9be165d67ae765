"""
Orders Models
=============

Order and OrderItem ORM models plus the draft representation kept in the
Flask session while a new order is being assembled.

An order is either a draft (transient, serialised into the session) or a
saved row in the database, never both.
"""

import math
import re

from flask import session
from sqlalchemy import inspect

from orderdesk.core import Config, db
from orderdesk.core.database import TimestampMixin

STATUSES = ('new', 'processing', 'completed', 'cancelled')

# Fields an admin may set through the create/update forms
EDITABLE_FIELDS = (
    'customer_name', 'customer_email', 'customer_phone',
    'delivery_address', 'comment', 'status', 'extra_rate',
)

EMAIL_REGEX = re.compile(r'^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$')

# Largest value an INTEGER column holds (64-bit signed)
MAX_INTEGER = 2 ** 63 - 1

# Upper bound for the extra rate, in percent
MAX_EXTRA_RATE = 1000.0


class Order(TimestampMixin, db.Model):
    __tablename__ = Config.ORDERS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=False, default='')
    customer_email = db.Column(db.String(255))
    customer_phone = db.Column(db.String(64))
    delivery_address = db.Column(db.Text)
    comment = db.Column(db.Text)
    status = db.Column(db.String(32), nullable=False, default='new', index=True)
    # Percent applied on top of offer prices when new items are priced
    extra_rate = db.Column(db.Float, nullable=False, default=0.0)

    items = db.relationship(
        'OrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItem.id',
    )

    def __init__(self, **kwargs):
        kwargs.setdefault('status', 'new')
        kwargs.setdefault('extra_rate', 0.0)
        kwargs.setdefault('customer_name', '')
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Order {self.id or 'draft'} {self.status}>"

    @property
    def is_new_record(self):
        return not inspect(self).has_identity

    @property
    def order_number(self):
        return f"ORD-{str(self.id).zfill(6)}" if self.id else 'Draft'

    @property
    def total(self):
        return sum(item.subtotal for item in self.items)

    @classmethod
    def create_item(cls):
        return OrderItem(amount=1, price=0)

    def get_extra_rate(self):
        return self.extra_rate or 0.0

    def get_items(self):
        return list(self.items)

    def get_item(self, key):
        try:
            key = int(key)
        except (TypeError, ValueError):
            return None
        return next((item for item in self.items if item.key == key), None)

    def add_item(self, item):
        if self.is_new_record and item.key is None:
            item._draft_key = self._take_draft_key()
        self.items.append(item)

    def remove_item(self, item):
        self.items.remove(item)

    def _take_draft_key(self):
        next_key = getattr(self, '_next_draft_key', None)
        if next_key is None:
            next_key = max((item.key or 0 for item in self.items), default=0) + 1
        self._next_draft_key = next_key + 1
        return next_key

    # -- form handling -----------------------------------------------------

    def load(self, form):
        """
        Assign editable fields from submitted form data.
        Returns True when the form carried at least one order field.
        """
        self._load_errors = {}
        loaded = False

        for field in EDITABLE_FIELDS:
            if field not in form:
                continue
            loaded = True
            value = form.get(field, '')
            value = value.strip() if isinstance(value, str) else value

            if field == 'extra_rate':
                try:
                    value = float(value or 0)
                    if not math.isfinite(value):
                        raise ValueError(value)
                except (TypeError, ValueError):
                    self._load_errors['extra_rate'] = 'Extra rate must be a number'
                    continue

            setattr(self, field, value)

        return loaded

    def validate(self):
        errors = dict(getattr(self, '_load_errors', None) or {})

        if not (self.customer_name or '').strip():
            errors.setdefault('customer_name', 'Customer name is required')
        if self.customer_email and not EMAIL_REGEX.match(self.customer_email):
            errors.setdefault('customer_email', 'Invalid email address')
        if self.status not in STATUSES:
            errors.setdefault('status', f"Status must be one of: {', '.join(STATUSES)}")
        if 'extra_rate' not in errors:
            rate = self.get_extra_rate()
            if not math.isfinite(rate):
                errors['extra_rate'] = 'Extra rate must be a number'
            elif rate <= -100:
                errors['extra_rate'] = 'Extra rate must be greater than -100'
            elif rate > MAX_EXTRA_RATE:
                errors['extra_rate'] = f'Extra rate must be at most {MAX_EXTRA_RATE:g}'

        return errors

    def save(self):
        """Validate and persist through the ORM. Returns the validation errors."""
        errors = self.validate()
        if errors:
            return errors

        db.session.add(self)
        db.session.commit()
        return {}

    # -- draft (session) storage --------------------------------------------

    def to_draft(self):
        return {
            'fields': {
                field: getattr(self, field) for field in EDITABLE_FIELDS
            },
            'items': [item.to_draft() for item in self.items],
            'next_key': getattr(self, '_next_draft_key', None)
                or max((item.key or 0 for item in self.items), default=0) + 1,
        }

    @classmethod
    def from_draft(cls, data):
        fields = {
            field: value for field, value in (data.get('fields') or {}).items()
            if field in EDITABLE_FIELDS
        }
        order = cls(**fields)
        for entry in data.get('items') or []:
            order.items.append(OrderItem.from_draft(entry))
        order._next_draft_key = data.get('next_key')
        return order

    def save_to_session(self, key):
        session[key] = self.to_draft()

    @classmethod
    def get_from_session(cls, key):
        data = session.get(key)
        if not data:
            return cls()
        return cls.from_draft(data)

    @staticmethod
    def clear_session(key):
        session.pop(key, None)


class OrderItem(db.Model):
    __tablename__ = Config.ORDER_ITEMS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey(f'{Config.ORDERS_TABLE}.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    offer_id = db.Column(db.String(64), nullable=False)
    offer_name = db.Column(db.String(255), nullable=False, default='')
    amount = db.Column(db.Integer, nullable=False, default=1)
    # Unit price in minor currency units (pence)
    price = db.Column(db.Integer, nullable=False, default=0)

    order = db.relationship('Order', back_populates='items')

    def __repr__(self):
        return f"<OrderItem {self.key} offer={self.offer_id} x{self.amount}>"

    @property
    def key(self):
        """Identifier within the parent order: DB id, or draft sequence number"""
        if self.id is not None:
            return self.id
        return getattr(self, '_draft_key', None)

    @property
    def subtotal(self):
        return (self.price or 0) * (self.amount or 0)

    def set_offer(self, offer, calculator):
        self.offer_id = str(offer.id)
        self.offer_name = offer.name
        self.price = calculator.price_for(offer)

    def to_draft(self):
        return {
            'key': self.key,
            'offer_id': self.offer_id,
            'offer_name': self.offer_name,
            'amount': self.amount,
            'price': self.price,
        }

    @classmethod
    def from_draft(cls, entry):
        item = cls(
            offer_id=entry['offer_id'],
            offer_name=entry.get('offer_name', ''),
            amount=int(entry.get('amount', 1)),
            price=int(entry.get('price', 0)),
        )
        item._draft_key = entry.get('key')
        return item
