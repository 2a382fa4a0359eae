import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from auth import AuthenticatedUser, get_current_user, require_admin
from database import create_document, get_db, icontains, oid, paginate, to_str_id, utcnow
from schemas import Product, Review

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["products"])


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    old_price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    images: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)


class ReviewCreate(BaseModel):
    rating: Optional[int] = None
    comment: Optional[str] = Field(None, max_length=500)


def get_product_or_404(product_id: str):
    doc = get_db().product.find_one({"_id": oid(product_id, "Product ID")})
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found.")
    return doc


# ---------------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------------
@router.get("/products")
def list_products(
    category: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    name_search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
):
    query = {}
    if category:
        query["category"] = category.strip().lower()
    if price_min is not None or price_max is not None:
        query["price"] = {}
        if price_min is not None:
            query["price"]["$gte"] = price_min
        if price_max is not None:
            query["price"]["$lte"] = price_max
    if name_search:
        query["name"] = icontains(name_search)

    docs, pagination = paginate("product", query, page, limit)
    return {"data": [to_str_id(d) for d in docs], "pagination": pagination}


@router.get("/products/{product_id}")
def get_product(product_id: str):
    return to_str_id(get_product_or_404(product_id))


@router.post("/products", status_code=201)
def create_product(payload: Product, admin: AuthenticatedUser = Depends(require_admin)):
    product_id = create_document("product", payload)
    logger.info("Product %s created by %s", product_id, admin.email)
    return to_str_id(get_db().product.find_one({"_id": oid(product_id)}))


@router.put("/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, admin: AuthenticatedUser = Depends(require_admin)):
    _id = oid(product_id, "Product ID")
    update_data = payload.model_dump(exclude_none=True)
    if "category" in update_data:
        update_data["category"] = update_data["category"].strip().lower()
    update_data["updated_at"] = utcnow()

    db = get_db()
    res = db.product.update_one({"_id": _id}, {"$set": update_data})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Product not found for update.")
    return to_str_id(db.product.find_one({"_id": _id}))


@router.delete("/products/{product_id}")
def delete_product(product_id: str, admin: AuthenticatedUser = Depends(require_admin)):
    res = get_db().product.delete_one({"_id": oid(product_id, "Product ID")})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Product not found for deletion.")
    return {"ok": True}


@router.get("/product-categories")
def list_categories():
    categories = [c for c in get_db().product.distinct("category") if c]
    return sorted(categories)


# ---------------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------------
@router.get("/products/{product_id}/reviews")
def list_reviews(product_id: str):
    get_product_or_404(product_id)
    docs = get_db().review.find({"product_id": product_id}).sort("created_at", DESCENDING)
    return [to_str_id(d) for d in docs]


@router.post("/products/{product_id}/reviews", status_code=201)
def create_review(product_id: str, payload: ReviewCreate, current: AuthenticatedUser = Depends(get_current_user)):
    get_product_or_404(product_id)
    if payload.rating is None or payload.rating < 1 or payload.rating > 5:
        raise HTTPException(status_code=400, detail="Rating must be between 1 and 5.")

    db = get_db()
    if db.review.find_one({"product_id": product_id, "user_id": current.id}):
        raise HTTPException(status_code=409, detail="You have already reviewed this product.")

    review = Review(
        product_id=product_id,
        user_id=current.id,
        user_name=current.name or current.email,
        rating=payload.rating,
        comment=payload.comment,
    )
    try:
        review_id = create_document("review", review)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="You have already reviewed this product.")
    return to_str_id(db.review.find_one({"_id": oid(review_id)}))


@router.delete("/reviews/{review_id}")
def delete_review(review_id: str, current: AuthenticatedUser = Depends(get_current_user)):
    db = get_db()
    _id = oid(review_id, "Review ID")
    review = db.review.find_one({"_id": _id})
    if not review:
        raise HTTPException(status_code=404, detail="Review not found.")
    if not current.is_admin and review.get("user_id") != current.id:
        raise HTTPException(status_code=403, detail="Forbidden. You do not have permission to delete this review.")
    db.review.delete_one({"_id": _id})
    return {"ok": True}
