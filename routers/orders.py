import logging
from datetime import datetime
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo import DESCENDING

from auth import AuthenticatedUser, get_current_user, require_admin
from database import create_document, get_db, is_valid_oid, oid, to_str_id, utcnow
from email_service import send_order_confirmation
from pricing import StockItem, StockValidationError, calculate_cart_summary, deduct_stock, validate_stock_for_order
from schemas import Address, Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

CANCELLABLE_STATUSES = ("pending", "processing")


class CheckoutRequest(BaseModel):
    shipping_address: Optional[Address] = None
    payment_method: Optional[PaymentMethod] = None
    billing_address: Optional[Address] = None


class OrderUpdate(BaseModel):
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    is_paid: Optional[bool] = None
    paid_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


def attach_users(orders):
    """Add a {id, name, email} `user` block to each serialized order."""
    user_ids = {o["user_id"] for o in orders if is_valid_oid(o.get("user_id"))}
    users = {}
    if user_ids:
        cursor = get_db().user.find({"_id": {"$in": [ObjectId(u) for u in user_ids]}}, {"name": 1, "email": 1})
        users = {str(u["_id"]): u for u in cursor}
    for order in orders:
        user = users.get(order.get("user_id"))
        order["user"] = {"id": order.get("user_id"), "name": user.get("name"), "email": user.get("email")} if user else None
    return orders


def get_order_for(order_id: str, current: AuthenticatedUser, action: str = "view"):
    _id = oid(order_id, "Order ID")
    order = get_db().order.find_one({"_id": _id})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found.")
    if not current.is_admin and order.get("user_id") != current.id:
        raise HTTPException(status_code=403, detail=f"Forbidden. You do not have permission to {action} this order.")
    return order


@router.get("")
def list_orders(current: AuthenticatedUser = Depends(get_current_user)):
    query = {} if current.is_admin else {"user_id": current.id}
    docs = get_db().order.find(query).sort("created_at", DESCENDING)
    return attach_users([to_str_id(d) for d in docs])


@router.post("", status_code=201)
def create_order(payload: CheckoutRequest, current: AuthenticatedUser = Depends(get_current_user)):
    if payload.shipping_address is None or payload.payment_method is None:
        raise HTTPException(status_code=400, detail="Shipping address and payment method are required.")
    if not payload.shipping_address.is_complete():
        raise HTTPException(status_code=400, detail="Incomplete shipping address.")

    db = get_db()
    cart = db.cart.find_one({"user_id": current.id})
    if not cart or not cart.get("items"):
        raise HTTPException(status_code=400, detail="Cart is empty. Cannot create an order.")

    stock_items = [StockItem(product_id=line["product_id"], quantity=line["quantity"]) for line in cart["items"]]
    try:
        validate_stock_for_order(db, stock_items)
    except StockValidationError as e:
        raise HTTPException(status_code=404 if e.missing else 400, detail=str(e))

    summary = calculate_cart_summary(db, cart["items"])
    order = Order(
        user_id=current.id,
        items=[
            OrderItem(
                product_id=d.product_id,
                name=d.name,
                image_url=d.image_url,
                price=d.price,
                quantity=d.quantity,
            )
            for d in summary.items_details
        ],
        shipping_address=payload.shipping_address,
        billing_address=payload.billing_address,
        subtotal=summary.subtotal,
        shipping_price=summary.shipping_price,
        tax_price=summary.tax_price,
        total_price=summary.total_price,
        payment_method=payload.payment_method,
    )
    order_id = create_document("order", order)

    deduct_stock(db, stock_items)
    db.cart.delete_one({"_id": cart["_id"]})

    created = to_str_id(db.order.find_one({"_id": ObjectId(order_id)}))
    ok, error = send_order_confirmation(created, current.email)
    if not ok:
        logger.warning("Order %s confirmation email not sent: %s", order_id, error)
    logger.info("Order %s placed by %s, total %.2f", order_id, current.id, order.total_price)
    return created


@router.get("/{order_id}")
def get_order(order_id: str, current: AuthenticatedUser = Depends(get_current_user)):
    order = to_str_id(get_order_for(order_id, current))
    return attach_users([order])[0]


@router.put("/{order_id}")
def update_order(order_id: str, payload: OrderUpdate, admin: AuthenticatedUser = Depends(require_admin)):
    _id = oid(order_id, "Order ID")
    update_data = payload.model_dump(exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No update data provided.")
    update_data["updated_at"] = utcnow()

    db = get_db()
    res = db.order.update_one({"_id": _id}, {"$set": update_data})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Order not found for update.")
    return to_str_id(db.order.find_one({"_id": _id}))


@router.delete("/{order_id}")
def cancel_order(order_id: str, current: AuthenticatedUser = Depends(get_current_user)):
    order = get_order_for(order_id, current, action="delete")
    status = order.get("order_status")
    if status not in CANCELLABLE_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Order cannot be deleted as it is currently '{status}'. "
                   "Only 'pending' or 'processing' orders can be deleted.",
        )

    db = get_db()
    db.order.update_one({"_id": order["_id"]}, {"$set": {"order_status": "cancelled", "updated_at": utcnow()}})
    return to_str_id(db.order.find_one({"_id": order["_id"]}))
