"""Redis-backed checkout session shared with the storefront.

The storefront writes the cart under `cart:{session_id}` and checkout flags in
the `checkout:{session_id}` hash; the gateway only clears them.
"""

import redis


class CheckoutSession:
    """Checkout flags and cart for one shopper session."""

    def __init__(self, rdb: redis.Redis, session_id: str) -> None:
        self.rdb = rdb
        self.session_id = session_id

    @property
    def _key(self) -> str:
        return f"checkout:{self.session_id}"

    @property
    def _cart_key(self) -> str:
        return f"cart:{self.session_id}"

    def clear_reload_checkout(self) -> None:
        """Let the shopper retry from the same page after a failed charge."""

        self.rdb.hdel(self._key, "reload_checkout")

    def clear_order_awaiting_payment(self) -> None:
        self.rdb.hdel(self._key, "order_awaiting_payment")

    def empty_cart(self) -> None:
        self.rdb.delete(self._cart_key)
