from datetime import datetime

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from auth import AuthenticatedUser, get_current_user
from config import PLACEHOLDER_IMAGE
from database import create_document, days_ago, get_db, is_valid_oid, to_str_id, utcnow
from schemas import Wishlist, WishlistItem

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


class AddToWishlistRequest(BaseModel):
    product_id: str


@router.get("")
def get_wishlist(current: AuthenticatedUser = Depends(get_current_user)):
    db = get_db()
    wishlist = db.wishlist.find_one({"user_id": current.id})
    if not wishlist:
        return {"items": []}

    product_ids = [ObjectId(i["product_id"]) for i in wishlist["items"] if is_valid_oid(i.get("product_id"))]
    products = {str(p["_id"]): p for p in db.product.find({"_id": {"$in": product_ids}})} if product_ids else {}
    new_since = days_ago(7)

    items = []
    for entry in wishlist["items"]:
        product = products.get(entry.get("product_id"))
        if product is None:
            continue
        created_at = product.get("created_at")
        old_price = product.get("old_price")
        images = product.get("images") or []
        items.append({
            "id": entry["id"],
            "product_id": entry["product_id"],
            "name": product.get("name"),
            "price": product.get("price"),
            "old_price": old_price,
            "image_url": images[0] if images else PLACEHOLDER_IMAGE,
            "is_newly_released": isinstance(created_at, datetime) and created_at >= new_since,
            "is_on_sale": old_price is not None and old_price > product.get("price", 0),
            "added_at": entry.get("added_at"),
            "stock": product.get("stock", 0),
        })

    wishlist["items"] = items
    return to_str_id(wishlist)


@router.post("", status_code=201)
def add_to_wishlist(payload: AddToWishlistRequest, current: AuthenticatedUser = Depends(get_current_user)):
    if not is_valid_oid(payload.product_id):
        raise HTTPException(status_code=400, detail="Invalid Product ID.")

    db = get_db()
    if not db.product.find_one({"_id": ObjectId(payload.product_id)}):
        raise HTTPException(status_code=404, detail="Product not found.")

    wishlist = db.wishlist.find_one({"user_id": current.id})
    if not wishlist:
        wishlist_id = create_document("wishlist", Wishlist(user_id=current.id))
        wishlist = db.wishlist.find_one({"_id": ObjectId(wishlist_id)})

    if any(i["product_id"] == payload.product_id for i in wishlist["items"]):
        raise HTTPException(status_code=409, detail="Product already in wishlist.")

    item = WishlistItem(id=str(ObjectId()), product_id=payload.product_id, added_at=utcnow())
    db.wishlist.update_one(
        {"_id": wishlist["_id"]},
        {"$push": {"items": item.model_dump()}, "$set": {"updated_at": utcnow()}},
    )
    return to_str_id(db.wishlist.find_one({"_id": wishlist["_id"]}))


@router.delete("/{product_id}")
def remove_from_wishlist(product_id: str, current: AuthenticatedUser = Depends(get_current_user)):
    if not is_valid_oid(product_id):
        raise HTTPException(status_code=400, detail="Invalid Product ID format.")

    res = get_db().wishlist.update_one(
        {"user_id": current.id, "items.product_id": product_id},
        {"$pull": {"items": {"product_id": product_id}}, "$set": {"updated_at": utcnow()}},
    )
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Product not found in wishlist or wishlist not found.")
    return {"ok": True, "message": "Product removed from wishlist successfully."}
