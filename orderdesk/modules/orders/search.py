from orderdesk.core import db
from .models import Order, STATUSES


class OrderSearch:
    """Filters for the order index page"""

    def __init__(self, per_page=20):
        self.per_page = per_page
        self.id = None
        self.status = ''
        self.customer = ''
        self.page = 1

    def load(self, params):
        try:
            self.id = int(params.get('id')) if params.get('id') else None
        except (TypeError, ValueError):
            self.id = None

        status = (params.get('status') or '').strip()
        self.status = status if status in STATUSES else ''
        self.customer = (params.get('customer') or '').strip()

        try:
            self.page = max(int(params.get('page', 1)), 1)
        except (TypeError, ValueError):
            self.page = 1

    def filters(self):
        """Active filters, for building pagination links"""
        return {
            key: value for key, value in
            (('id', self.id), ('status', self.status), ('customer', self.customer))
            if value
        }

    def search(self, params):
        self.load(params)

        query = db.select(Order).order_by(Order.created_at.desc(), Order.id.desc())
        if self.id:
            query = query.where(Order.id == self.id)
        if self.status:
            query = query.where(Order.status == self.status)
        if self.customer:
            pattern = f"%{self.customer}%"
            query = query.where(db.or_(
                Order.customer_name.ilike(pattern),
                Order.customer_email.ilike(pattern),
                Order.customer_phone.ilike(pattern),
            ))

        return db.paginate(query, page=self.page, per_page=self.per_page, error_out=False)
