"""
Cart engine: cart contents, coupon state, pricing and persistence.

The engine is the only owner of the in-memory cart. Every mutation is saved to the
injected key-value store right away and then announced to subscribers. It does no
locking of its own, so callers on several threads must serialize their calls.
"""

import logging
from typing import Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from cart_store import KeyValueStore
from config import CART_STORAGE_KEY
from models import CartItem, CheckoutReceipt, Product
from order_counts import OrderCountStore

logger = logging.getLogger(__name__)

COUPON_CODE = "SUMMER2024"
COUPON_DISCOUNT = 0.2
COUPON_APPLIED = "20% discount applied!"
COUPON_INVALID = "Invalid coupon code."

_saved_cart = TypeAdapter(List[CartItem])

Listener = Callable[["CartEngine"], None]


class CartEngine:
    def __init__(
        self,
        store: KeyValueStore,
        order_counts: OrderCountStore,
        storage_key: str = CART_STORAGE_KEY,
    ) -> None:
        self.store = store
        self.order_counts = order_counts
        self.storage_key = storage_key
        self.cart_items: Dict[Product, int] = {}
        self.coupon_code = ""
        self.coupon_message = ""
        self.discount_percentage = 0.0
        self._listeners: List[Listener] = []
        self.load_cart()

    # ---------- derived values ----------
    @property
    def subtotal(self) -> float:
        return sum(product.price * quantity for product, quantity in self.cart_items.items())

    @property
    def total(self) -> float:
        return self.subtotal * (1 - self.discount_percentage)

    @property
    def discount_amount(self) -> float:
        return self.subtotal * self.discount_percentage

    @property
    def item_count(self) -> int:
        return sum(self.cart_items.values())

    @property
    def lines(self) -> List[CartItem]:
        return [CartItem(product=p, quantity=q) for p, q in self.cart_items.items()]

    # ---------- change notification ----------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(engine)`` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Cart listener failed")

    def _changed(self) -> None:
        self.save_cart()
        self._notify()

    # ---------- cart mutations ----------
    def add_to_cart(self, product: Product) -> None:
        self.cart_items[product] = self.cart_items.get(product, 0) + 1
        self._changed()

    def remove_from_cart(self, product: Product) -> None:
        quantity = self.cart_items.get(product, 0)
        if quantity <= 0:
            return
        if quantity == 1:
            del self.cart_items[product]
        else:
            self.cart_items[product] = quantity - 1
        self._changed()

    def remove_line(self, product: Product) -> None:
        if self.cart_items.pop(product, None) is None:
            return
        self._changed()

    def quantity_in_cart(self, product: Product) -> int:
        return self.cart_items.get(product, 0)

    def product_by_id(self, product_id: int) -> Optional[Product]:
        for product in self.cart_items:
            if product.id == product_id:
                return product
        return None

    # ---------- coupons ----------
    def set_coupon_code(self, code: str) -> None:
        self.coupon_code = code or ""

    def apply_coupon(self) -> None:
        if self.coupon_code.upper() == COUPON_CODE:
            self.discount_percentage = COUPON_DISCOUNT
            self.coupon_message = COUPON_APPLIED
        else:
            self.discount_percentage = 0.0
            self.coupon_message = COUPON_INVALID
        self._notify()

    # ---------- checkout ----------
    def checkout(self) -> CheckoutReceipt:
        """
        Hand every line to the order-count store, then clear the cart and coupon.

        Increments are not awaited: the cart is cleared even if the remote counters
        never get updated.
        """
        receipt = CheckoutReceipt(
            items=self.lines,
            itemCount=self.item_count,
            subtotal=self.subtotal,
            discount=self.discount_amount,
            total=self.total,
            message=f"Order placed: {self.item_count} item(s), total ${self.total:.2f}",
        )
        logger.info(f"Proceeding to checkout with total: ${self.total:.2f}")

        for product, quantity in self.cart_items.items():
            self.order_counts.increment_order_count(product.id, quantity)

        self.cart_items.clear()
        self.coupon_code = ""
        self.coupon_message = ""
        self.discount_percentage = 0.0
        self._changed()
        return receipt

    # ---------- persistence ----------
    def save_cart(self) -> None:
        try:
            payload = _saved_cart.dump_json(self.lines).decode()
            self.store.set(self.storage_key, payload)
        except Exception as e:
            logger.error(f"Failed to save cart: {e}")

    def load_cart(self) -> None:
        try:
            payload = self.store.get(self.storage_key)
        except Exception as e:
            logger.error(f"Failed to read saved cart: {e}")
            return
        if payload is None:
            return

        try:
            saved_items = _saved_cart.validate_json(payload)
        except ValidationError as e:
            logger.error(f"Failed to load cart: {e}")
            return

        cart_items: Dict[Product, int] = {}
        for item in saved_items:
            cart_items[item.product] = cart_items.get(item.product, 0) + item.quantity
        self.cart_items = cart_items
        logger.info(f"Restored cart with {len(cart_items)} line(s)")
