"""
Offer Catalog
=============

Offers are catalog entries that order items are created from. The orders
admin only reads them, through an OfferManager:

- CatalogOfferManager: offers stored in the local `offers` table
- RemoteOfferManager: offers served by an external catalog API over HTTP

Any object with `find_offer_by_id`, `get_search_model` and
`get_offer_data_provider` can be passed to OrderDesk instead.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from flask import g

from orderdesk.core import Config, db

logger = logging.getLogger(__name__)


class Offer(db.Model):
    __tablename__ = Config.OFFERS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), unique=True)
    # Price in minor currency units (pence)
    price = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Offer {self.id} {self.name}>"


@dataclass
class RemoteOffer:
    """Offer as returned by the remote catalog API"""
    id: str
    name: str
    price: int
    sku: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RemoteOffer":
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            price=int(data.get('price', 0)),
            sku=data.get('sku'),
        )


@dataclass
class OfferSearch:
    """Search form state for the offer picker"""
    q: str = ''
    page: int = 1

    @classmethod
    def from_params(cls, params) -> "OfferSearch":
        q = (params.get('q') or '').strip()
        try:
            page = max(int(params.get('page', 1)), 1)
        except (TypeError, ValueError):
            page = 1
        return cls(q=q, page=page)


class OfferPage:
    """One page of offers; same attributes the templates use on a Pagination"""

    def __init__(self, items: List[Any], page: int, per_page: int, total: int):
        self.items = items
        self.page = page
        self.per_page = per_page
        self.total = total

    @property
    def pages(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1) if self.per_page else 1

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def prev_num(self) -> Optional[int]:
        return self.page - 1 if self.has_prev else None

    @property
    def next_num(self) -> Optional[int]:
        return self.page + 1 if self.has_next else None


class OfferManager:
    """Interface the orders admin uses to reach the offer catalog"""

    def __init__(self, per_page: int = 10):
        self.per_page = per_page

    def find_offer_by_id(self, offer_id):
        raise NotImplementedError

    def get_search_model(self) -> OfferSearch:
        """Search state of the current request"""
        return g.get('offer_search') or OfferSearch()

    def get_offer_data_provider(self, params):
        raise NotImplementedError


class CatalogOfferManager(OfferManager):
    """Offers from the local `offers` table"""

    def find_offer_by_id(self, offer_id):
        try:
            offer_id = int(offer_id)
        except (TypeError, ValueError):
            return None
        return db.session.get(Offer, offer_id)

    def get_offer_data_provider(self, params):
        g.offer_search = search = OfferSearch.from_params(params)

        query = db.select(Offer).where(Offer.is_active.is_(True)).order_by(Offer.name)
        if search.q:
            pattern = f"%{search.q}%"
            query = query.where(db.or_(Offer.name.ilike(pattern), Offer.sku.ilike(pattern)))

        return db.paginate(query, page=search.page, per_page=self.per_page, error_out=False)


class RemoteOfferManager(OfferManager):
    """
    Offers from an external catalog service.

    Expected endpoints:
        GET {base_url}/offers?q=&page=&per_page=  -> {"offers": [...], "total": n}
        GET {base_url}/offers/{id}                -> {...} or 404
    """

    def __init__(self, base_url: str, api_token: str = None, timeout: float = 10,
                 per_page: int = 10, http: requests.Session = None):
        super().__init__(per_page=per_page)
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = http or requests.Session()
        if api_token:
            self.http.headers['Authorization'] = f"Bearer {api_token}"

    def find_offer_by_id(self, offer_id) -> Optional[RemoteOffer]:
        url = f"{self.base_url}/offers/{quote(str(offer_id), safe='')}"
        response = self.http.get(url, timeout=self.timeout)

        if response.status_code == 404:
            return None
        response.raise_for_status()
        return RemoteOffer.from_json(response.json())

    def get_offer_data_provider(self, params) -> OfferPage:
        g.offer_search = search = OfferSearch.from_params(params)

        response = self.http.get(
            f"{self.base_url}/offers",
            params={'q': search.q, 'page': search.page, 'per_page': self.per_page},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()

        offers = [RemoteOffer.from_json(entry) for entry in payload.get('offers', [])]
        total = int(payload.get('total', len(offers)))
        logger.debug("Remote offer search q=%r page=%s -> %s offers", search.q, search.page, total)

        return OfferPage(offers, page=search.page, per_page=self.per_page, total=total)


def build_offer_manager(config) -> OfferManager:
    """Pick the offer manager from ORDERDESK_OFFER_MANAGER"""
    kind = (config.get('ORDERDESK_OFFER_MANAGER') or 'catalog').lower()
    per_page = int(config.get('ORDERDESK_OFFERS_PER_PAGE') or 10)

    if kind == 'remote':
        base_url = config.get('ORDERDESK_OFFER_API_URL')
        if not base_url:
            raise ValueError("ORDERDESK_OFFER_API_URL is required when ORDERDESK_OFFER_MANAGER is 'remote'")
        return RemoteOfferManager(
            base_url,
            api_token=config.get('ORDERDESK_OFFER_API_TOKEN'),
            timeout=float(config.get('ORDERDESK_OFFER_API_TIMEOUT') or 10),
            per_page=per_page,
        )
    if kind == 'catalog':
        return CatalogOfferManager(per_page=per_page)

    raise ValueError(f"Unknown ORDERDESK_OFFER_MANAGER: {kind}")
