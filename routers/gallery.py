import re
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from auth import AuthenticatedUser, require_admin
from database import create_document, get_db, oid, paginate, to_str_id, utcnow
from schemas import GalleryImage

router = APIRouter(prefix="/api/gallery", tags=["gallery"])

IMAGE_URL_RE = re.compile(r"^https?://.+\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)


class GalleryImageUpdate(BaseModel):
    image_url: Optional[str] = None


def check_image_url(image_url: Optional[str], required_detail: str) -> str:
    if not image_url:
        raise HTTPException(status_code=400, detail=required_detail)
    image_url = image_url.strip()
    if not IMAGE_URL_RE.match(image_url):
        raise HTTPException(status_code=400, detail="Invalid image URL format.")
    return image_url


@router.get("")
def list_gallery(page: int = 1, limit: int = 9, sort_field: str = "created_at",
                 sort_order: Literal["asc", "desc"] = "desc"):
    docs, pagination = paginate("gallery_image", {}, page, limit, sort_field, sort_order)
    return {"data": [to_str_id(d) for d in docs], "pagination": pagination}


@router.get("/{image_id}")
def get_gallery_image(image_id: str):
    doc = get_db().gallery_image.find_one({"_id": oid(image_id, "Gallery Image ID")})
    if not doc:
        raise HTTPException(status_code=404, detail="Gallery image not found.")
    return to_str_id(doc)


@router.post("", status_code=201)
def create_gallery_image(payload: GalleryImageUpdate, admin: AuthenticatedUser = Depends(require_admin)):
    image_url = check_image_url(payload.image_url, "Image URL is required.")
    image_id = create_document("gallery_image", GalleryImage(image_url=image_url))
    return to_str_id(get_db().gallery_image.find_one({"_id": oid(image_id)}))


@router.put("/{image_id}")
def update_gallery_image(image_id: str, payload: GalleryImageUpdate, admin: AuthenticatedUser = Depends(require_admin)):
    _id = oid(image_id, "Gallery Image ID")
    image_url = check_image_url(payload.image_url, "Image URL is required for update.")

    db = get_db()
    res = db.gallery_image.update_one({"_id": _id}, {"$set": {"image_url": image_url, "updated_at": utcnow()}})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Gallery image not found for update.")
    return to_str_id(db.gallery_image.find_one({"_id": _id}))


@router.delete("/{image_id}")
def delete_gallery_image(image_id: str, admin: AuthenticatedUser = Depends(require_admin)):
    res = get_db().gallery_image.delete_one({"_id": oid(image_id, "Gallery Image ID")})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Gallery image not found for deletion.")
    return {"ok": True}
