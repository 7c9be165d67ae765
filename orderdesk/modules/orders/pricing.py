from contextlib import contextmanager
from contextvars import ContextVar


class PriceCalculator:
    """
    Prices offers for order items.

    The extra rate is a percentage applied on top of the offer price while it
    is active; outside of `with_extra_rate` the base rate is used. The active
    rate is held per execution context, so one calculator can serve
    concurrent requests.
    """

    def __init__(self, base_rate: float = 0.0):
        self.base_rate = base_rate
        self._active_rate = ContextVar(f'orderdesk_extra_rate_{id(self)}', default=None)

    @property
    def current_rate(self) -> float:
        rate = self._active_rate.get()
        return self.base_rate if rate is None else rate

    def price_for(self, offer) -> int:
        """Offer price in minor units adjusted by the current extra rate"""
        return int(round(offer.price * (100 + self.current_rate) / 100))

    @contextmanager
    def extra_rate(self, rate):
        token = self._active_rate.set(float(rate or 0))
        try:
            yield self
        finally:
            self._active_rate.reset(token)

    def with_extra_rate(self, callback, extra_rate):
        """Run `callback` with `extra_rate` active and return its result"""
        with self.extra_rate(extra_rate):
            return callback()
