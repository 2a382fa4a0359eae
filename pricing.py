"""
Cart pricing and stock bookkeeping

Prices and stock always come from the product collection at call time, never
from the snapshot stored on a cart line.
"""

import logging
from typing import Dict, List

from bson import ObjectId
from pydantic import BaseModel, Field
from pymongo import UpdateOne

from config import BASE_SHIPPING_COST, FREE_SHIPPING_THRESHOLD, PLACEHOLDER_IMAGE, SALES_TAX_RATE

logger = logging.getLogger(__name__)


class StockValidationError(Exception):
    """Raised when an order cannot be fulfilled from current stock."""

    def __init__(self, message: str, missing: bool = False):
        super().__init__(message)
        self.missing = missing


class StockItem(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class ItemDetail(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int
    stock: int
    image_url: str
    total_item_price: float


class CartSummary(BaseModel):
    subtotal: float = 0.0
    shipping_price: float = 0.0
    tax_rate: float = SALES_TAX_RATE
    tax_price: float = 0.0
    total_price: float = 0.0
    item_count: int = 0
    items_details: List[ItemDetail] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


def compute_charges(subtotal: float) -> Dict[str, float]:
    shipping = 0.0 if subtotal >= FREE_SHIPPING_THRESHOLD else BASE_SHIPPING_COST
    tax = subtotal * SALES_TAX_RATE
    return {
        "subtotal": round(subtotal, 2),
        "shipping_price": round(shipping, 2),
        "tax_price": round(tax, 2),
        "total_price": round(subtotal + shipping + tax, 2),
    }


def _load_products(db, product_ids, projection=None) -> Dict[str, dict]:
    object_ids = [ObjectId(pid) for pid in product_ids if ObjectId.is_valid(pid)]
    if not object_ids:
        return {}
    docs = db["product"].find({"_id": {"$in": object_ids}}, projection)
    return {str(d["_id"]): d for d in docs}


def calculate_cart_summary(db, cart_items: List[dict]) -> CartSummary:
    """
    Price a list of cart lines ({id, product_id, quantity}) against current
    product data.

    Lines whose product is gone are skipped and reported in `errors`. Lines
    asking for more than is in stock are still priced at the requested
    quantity, with an error recorded, so the shopper sees the full picture.
    """
    errors: List[str] = []
    details: List[ItemDetail] = []
    subtotal = 0.0
    item_count = 0

    products = _load_products(db, [str(i.get("product_id") or "") for i in cart_items])

    for line in cart_items:
        product_id = str(line.get("product_id") or "")
        if not ObjectId.is_valid(product_id):
            errors.append(
                f"Product data missing or invalid for cart item (cart item id: {line.get('id')}). Item skipped."
            )
            continue

        product = products.get(product_id)
        if product is None:
            errors.append(
                f"Product with ID {product_id} not found in database during re-check. Item skipped from calculation."
            )
            continue

        price = float(product.get("price", 0))
        stock = int(product.get("stock", 0))
        quantity = int(line.get("quantity", 0))

        if quantity > stock:
            errors.append(
                f'Insufficient stock for "{product.get("name")}". Requested: {quantity}, Available: {stock}. '
                "Calculated with available stock."
            )

        subtotal += price * quantity
        item_count += quantity
        images = product.get("images") or []
        details.append(ItemDetail(
            product_id=product_id,
            name=product.get("name", ""),
            price=price,
            quantity=quantity,
            stock=stock,
            image_url=images[0] if images else PLACEHOLDER_IMAGE,
            total_item_price=round(price * quantity, 2),
        ))

    charges = compute_charges(subtotal)
    return CartSummary(
        subtotal=charges["subtotal"],
        shipping_price=charges["shipping_price"],
        tax_rate=SALES_TAX_RATE,
        tax_price=charges["tax_price"],
        total_price=charges["total_price"],
        item_count=item_count,
        items_details=details,
        errors=errors,
    )


def validate_stock_for_order(db, items: List[StockItem]) -> bool:
    products = _load_products(db, [i.product_id for i in items], {"name": 1, "stock": 1})

    for item in items:
        product = products.get(item.product_id)
        if product is None:
            raise StockValidationError(
                f"Product with ID {item.product_id} not found during stock validation. It may have been removed.",
                missing=True,
            )
        stock = product.get("stock")
        if stock is None or item.quantity > stock:
            raise StockValidationError(
                f'Insufficient stock for "{product.get("name")}". Only {stock or 0} available.'
            )
    return True


def deduct_stock(db, items: List[StockItem]) -> int:
    """
    Decrement stock for each ordered line. The update only applies where stock
    still covers the quantity, so a racing order can leave some lines untouched.
    """
    if not items:
        return 0
    operations = [
        UpdateOne(
            {"_id": ObjectId(item.product_id), "stock": {"$gte": item.quantity}},
            {"$inc": {"stock": -item.quantity}},
        )
        for item in items
    ]
    result = db["product"].bulk_write(operations)
    if result.modified_count != len(items):
        logger.warning(
            "Stock deduction mismatch: %d of %d products updated. Some items might not have been "
            "updated due to race conditions or insufficient stock.",
            result.modified_count,
            len(items),
        )
    return result.modified_count
