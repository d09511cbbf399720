# src/sf_cart/application/service.py
"""CartService — the shopping cart, persisted under {namespace}:cart.

Only line items are stored; totals are derived on every read so a stored
cart can never disagree with its own items. Storage errors propagate.
"""
import logging

from src.sf_cart.domain.models import Cart, CartItem
from src.sf_catalog.domain.models import Product
from src.sf_common.errors import NotFoundError, ValidationError
from src.sf_common.storage import KeyValueStorage, namespaced
from src.sf_order.domain.models import CartLine

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, storage: KeyValueStorage, namespace: str) -> None:
        self._storage = storage
        self._key = namespaced(namespace, "cart")

    async def get_cart(self) -> Cart:
        raw = await self._storage.get(self._key)
        if not raw:
            return Cart()
        return Cart(items=[CartItem.from_dict(item) for item in raw.get("items", [])])

    async def add_item(self, product: Product, quantity: int = 1) -> Cart:
        if not product.id:
            raise ValidationError("Invalid product")
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero", {"field": "quantity"})
        if not product.available:
            raise ValidationError(f"Product is not available: {product.name}")

        cart = await self.get_cart()
        existing = cart.find(product.id)
        if existing is not None:
            existing.quantity += quantity
            existing.unit_price = product.price
        else:
            cart.items.append(
                CartItem(
                    product_id=product.id,
                    name=product.name,
                    unit_price=product.price,
                    quantity=quantity,
                )
            )
        await self._save(cart)
        return cart

    async def update_quantity(self, product_id: str, quantity: int) -> Cart:
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative", {"field": "quantity"})
        if quantity == 0:
            return await self.remove_item(product_id)

        cart = await self.get_cart()
        item = cart.find(product_id)
        if item is None:
            raise NotFoundError(f"Item not in cart: {product_id}")
        item.quantity = quantity
        await self._save(cart)
        return cart

    async def remove_item(self, product_id: str) -> Cart:
        cart = await self.get_cart()
        remaining = [item for item in cart.items if item.product_id != product_id]
        if len(remaining) == len(cart.items):
            raise NotFoundError(f"Item not in cart: {product_id}")
        cart.items = remaining
        await self._save(cart)
        return cart

    async def remove_products(self, product_ids: list[str]) -> Cart:
        """Drop every item for the given products; unknown ids are ignored."""
        drop = set(product_ids)
        cart = await self.get_cart()
        cart.items = [item for item in cart.items if item.product_id not in drop]
        await self._save(cart)
        return cart

    async def clear(self) -> Cart:
        cart = Cart()
        await self._save(cart)
        return cart

    async def to_lines(self) -> list[CartLine]:
        cart = await self.get_cart()
        return [CartLine(product_id=item.product_id, quantity=item.quantity) for item in cart.items]

    async def _save(self, cart: Cart) -> None:
        await self._storage.set(self._key, {"items": [item.to_dict() for item in cart.items]})
        logger.debug("Cart saved: %d items, total %s", cart.item_count, cart.total)
