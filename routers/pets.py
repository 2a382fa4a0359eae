import logging
import re
from datetime import datetime
from typing import List, Literal, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from auth import AuthenticatedUser, require_admin
from database import create_document, days_ago, get_db, icontains, oid, paginate, to_str_id, utcnow
from schemas import MapLocation, Pet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pets", tags=["pets"])

NEW_ARRIVAL_DAYS = 7


class PetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = None
    age: Optional[str] = None
    color: Optional[str] = None
    gender: Optional[Literal["Male", "Female", "N/A"]] = None
    size: Optional[Literal["Tiny", "Small", "Medium", "Large"]] = None
    weight: Optional[float] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    location: Optional[str] = None
    images: Optional[List[str]] = None
    description: Optional[str] = None
    available_date: Optional[str] = None
    breed: Optional[str] = None
    date_of_birth: Optional[str] = None
    additional_info: Optional[List[str]] = None
    map_location: Optional[MapLocation] = None


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def with_flags(doc):
    """Serialize a pet and flag it as newly added when created within the last week."""
    created_at = doc.get("created_at")
    pet = to_str_id(doc)
    pet["is_newly_added"] = isinstance(created_at, datetime) and created_at >= days_ago(NEW_ARRIVAL_DAYS)
    pet.setdefault("images", [])
    return pet


@router.get("")
def list_pets(
    category: Optional[str] = None,
    type: Optional[str] = None,
    age: Optional[str] = None,
    color: Optional[str] = None,
    gender: Optional[str] = None,
    size: Optional[str] = None,
    weight: Optional[float] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    name_search: Optional[str] = None,
    location_search: Optional[str] = None,
    breed_search: Optional[str] = None,
    is_newly_added: Optional[bool] = None,
    exclude_id: Optional[str] = None,
    page: int = 1,
    limit: int = 9,
    sort_field: str = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
):
    query = {}
    if category:
        query["category"] = {"$in": [c.lower() for c in _csv(category)]}
    if type:
        query["type"] = {"$in": [re.compile(re.escape(t), re.IGNORECASE) for t in _csv(type)]}
    if age:
        query["age"] = age
    if color:
        query["color"] = color
    if gender:
        query["gender"] = {"$in": _csv(gender)}
    if size:
        query["size"] = {"$in": _csv(size)}
    if weight is not None:
        query["weight"] = weight
    if price_min is not None or price_max is not None:
        query["price"] = {}
        if price_min is not None:
            query["price"]["$gte"] = price_min
        if price_max is not None:
            query["price"]["$lte"] = price_max
    if name_search:
        query["name"] = icontains(name_search)
    if breed_search:
        query["breed"] = icontains(breed_search)
    if location_search:
        query["location"] = icontains(location_search)
    if is_newly_added:
        query["created_at"] = {"$gte": days_ago(NEW_ARRIVAL_DAYS)}
    if exclude_id:
        if ObjectId.is_valid(exclude_id):
            query["_id"] = {"$ne": ObjectId(exclude_id)}
        else:
            logger.warning("Invalid exclude_id provided: %s", exclude_id)

    docs, pagination = paginate("pet", query, page, limit, sort_field, sort_order)
    return {"data": [with_flags(d) for d in docs], "pagination": pagination}


@router.get("/{pet_id}")
def get_pet(pet_id: str):
    doc = get_db().pet.find_one({"_id": oid(pet_id, "Pet ID")})
    if not doc:
        raise HTTPException(status_code=404, detail="Pet not found.")
    return with_flags(doc)


@router.post("", status_code=201)
def create_pet(payload: Pet, admin: AuthenticatedUser = Depends(require_admin)):
    pet_id = create_document("pet", payload)
    logger.info("Pet %s created by %s", pet_id, admin.email)
    return with_flags(get_db().pet.find_one({"_id": oid(pet_id)}))


@router.put("/{pet_id}")
def update_pet(pet_id: str, payload: PetUpdate, admin: AuthenticatedUser = Depends(require_admin)):
    _id = oid(pet_id, "Pet ID")
    update_data = payload.model_dump(exclude_none=True)
    if "category" in update_data:
        update_data["category"] = update_data["category"].strip().lower()
    update_data["updated_at"] = utcnow()

    db = get_db()
    res = db.pet.update_one({"_id": _id}, {"$set": update_data})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Pet not found for update.")
    return with_flags(db.pet.find_one({"_id": _id}))


@router.delete("/{pet_id}")
def delete_pet(pet_id: str, admin: AuthenticatedUser = Depends(require_admin)):
    res = get_db().pet.delete_one({"_id": oid(pet_id, "Pet ID")})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Pet not found for deletion.")
    return {"ok": True}
