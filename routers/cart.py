import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from auth import AuthenticatedUser, get_current_user
from config import PLACEHOLDER_IMAGE
from database import create_document, get_db, is_valid_oid, oid, to_str_id, utcnow
from pricing import calculate_cart_summary
from schemas import Cart, CartItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class UpdateQuantityRequest(BaseModel):
    quantity: int = Field(..., ge=0)


def cover_image(product) -> str:
    images = product.get("images") or []
    return images[0] if images else PLACEHOLDER_IMAGE


def compute_cart_total(items) -> float:
    return round(sum(i["price"] * i["quantity"] for i in items), 2)


def save_cart(cart):
    cart["total_price"] = compute_cart_total(cart["items"])
    get_db().cart.update_one(
        {"_id": cart["_id"]},
        {"$set": {"items": cart["items"], "total_price": cart["total_price"], "updated_at": utcnow()}},
    )
    return cart


def find_line(cart, item_id: str):
    for line in cart["items"]:
        if line.get("id") == item_id:
            return line
    return None


def require_cart(user_id: str):
    cart = get_db().cart.find_one({"user_id": user_id})
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found for this user.")
    return cart


@router.get("")
def get_cart(current: AuthenticatedUser = Depends(get_current_user)):
    db = get_db()
    cart = db.cart.find_one({"user_id": current.id})
    if not cart:
        return {"items": [], "total_price": 0}

    product_ids = [ObjectId(i["product_id"]) for i in cart["items"] if is_valid_oid(i.get("product_id"))]
    products = {str(p["_id"]): p for p in db.product.find({"_id": {"$in": product_ids}})} if product_ids else {}

    items = []
    for line in cart["items"]:
        product = products.get(line.get("product_id"))
        if product is None:
            logger.warning("Cart %s references missing product %s", cart["_id"], line.get("product_id"))
            continue
        items.append({
            "id": line["id"],
            "product_id": line["product_id"],
            "name": product.get("name"),
            "image_url": cover_image(product),
            "price": product.get("price", 0),
            "quantity": line["quantity"],
            "stock": product.get("stock", 0),
        })

    result = to_str_id(cart)
    result["items"] = items
    result["total_price"] = compute_cart_total(items)
    return result


@router.post("")
def add_to_cart(payload: AddToCartRequest, current: AuthenticatedUser = Depends(get_current_user)):
    if not is_valid_oid(payload.product_id):
        raise HTTPException(status_code=400, detail="Invalid Product ID.")

    db = get_db()
    product = db.product.find_one({"_id": ObjectId(payload.product_id)})
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")

    stock = product.get("stock", 0)
    if stock < payload.quantity:
        raise HTTPException(status_code=400, detail=f"Insufficient stock for {product['name']}. Available: {stock}")

    cart = db.cart.find_one({"user_id": current.id})
    if not cart:
        cart_id = create_document("cart", Cart(user_id=current.id))
        cart = db.cart.find_one({"_id": ObjectId(cart_id)})

    existing = next((i for i in cart["items"] if i["product_id"] == payload.product_id), None)
    if existing:
        new_quantity = existing["quantity"] + payload.quantity
        if stock < new_quantity:
            raise HTTPException(status_code=400, detail=f"Cannot add more. Insufficient stock for {product['name']}.")
        existing["quantity"] = new_quantity
    else:
        line = CartItem(
            id=str(ObjectId()),
            product_id=payload.product_id,
            name=product["name"],
            image_url=cover_image(product),
            price=product.get("price", 0),
            quantity=payload.quantity,
            stock=stock,
        )
        cart["items"].append(line.model_dump())

    return to_str_id(save_cart(cart))


@router.put("/{item_id}")
def update_cart_item(item_id: str, payload: UpdateQuantityRequest, current: AuthenticatedUser = Depends(get_current_user)):
    if not is_valid_oid(item_id):
        raise HTTPException(status_code=400, detail="Invalid Cart Item ID format.")

    cart = require_cart(current.id)
    line = find_line(cart, item_id)
    if line is None:
        raise HTTPException(status_code=404, detail="Item not found in cart.")

    product = get_db().product.find_one({"_id": oid(line["product_id"])})
    if not product:
        cart["items"].remove(line)
        save_cart(cart)
        raise HTTPException(status_code=404, detail="Product no longer exists. Item removed from cart.")

    if payload.quantity == 0:
        cart["items"].remove(line)
    else:
        stock = product.get("stock", 0)
        if stock < payload.quantity:
            raise HTTPException(status_code=400, detail=f"Insufficient stock for {product['name']}. Available: {stock}")
        line["quantity"] = payload.quantity

    return to_str_id(save_cart(cart))


@router.delete("/{item_id}")
def remove_cart_item(item_id: str, current: AuthenticatedUser = Depends(get_current_user)):
    if not is_valid_oid(item_id):
        raise HTTPException(status_code=400, detail="Invalid Cart Item ID format.")

    cart = require_cart(current.id)
    line = find_line(cart, item_id)
    if line is None:
        raise HTTPException(status_code=404, detail="Item not found in cart or already removed.")

    cart["items"].remove(line)
    save_cart(cart)
    return {"ok": True, "message": "Item removed from cart."}


@router.get("/summary")
def cart_summary(current: AuthenticatedUser = Depends(get_current_user)):
    db = get_db()
    cart = db.cart.find_one({"user_id": current.id})
    if not cart or not cart.get("items"):
        return {
            "message": "Cart is empty.",
            "subtotal": 0,
            "shipping_price": 0,
            "tax_price": 0,
            "total_price": 0,
            "item_count": 0,
            "items_details": [],
        }

    summary = calculate_cart_summary(db, cart["items"])
    if summary.errors:
        raise HTTPException(
            status_code=400,
            detail={
                "message": "Error calculating cart summary. Some products may be unavailable or have issues.",
                "details": summary.errors,
            },
        )
    return summary.model_dump(exclude={"errors"})
