"""
MongoDB access helpers

`db` is the process-wide database handle. Everything reads it through this
module at call time so tests can swap it for an in-memory database.
"""

import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient

from config import DATABASE_NAME, DATABASE_URL

logger = logging.getLogger(__name__)

client = MongoClient(DATABASE_URL) if DATABASE_URL else None
db = client[DATABASE_NAME] if client is not None else None


def utcnow() -> datetime:
    # pymongo hands back naive UTC datetimes, so store them that way too
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_ago(days: int) -> datetime:
    return utcnow() - timedelta(days=days)


def get_db():
    """FastAPI dependency returning the live database handle."""
    if db is None:
        raise HTTPException(status_code=500, detail="Database not available")
    return db


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None):
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def is_valid_oid(id_str) -> bool:
    return isinstance(id_str, str) and ObjectId.is_valid(id_str)


def oid(id_str: str, label: str = "ID") -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {label} format.")


def icontains(text: str) -> dict:
    """Case-insensitive substring match with the user's text taken literally."""
    return {"$regex": re.escape(text.strip()), "$options": "i"}


def _plain(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def to_str_id(doc):
    if not doc:
        return doc
    doc = dict(doc)
    if doc.get("_id"):
        doc["id"] = str(doc.pop("_id"))
    return _plain(doc)


def paginate(collection_name: str, query: dict, page: int, limit: int,
             sort_field: str = "created_at", sort_order: str = "desc"):
    """Run a paged find and return (docs, pagination meta)."""
    page = max(page, 1)
    limit = max(limit, 1)
    collection = get_db()[collection_name]
    total = collection.count_documents(query)
    direction = ASCENDING if sort_order == "asc" else DESCENDING
    cursor = (
        collection.find(query)
        .sort(sort_field, direction)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    meta = {
        "current_page": page,
        "total_pages": math.ceil(total / limit),
        "total_items": total,
        "limit": limit,
    }
    return list(cursor), meta


def ensure_indexes():
    database = get_db()
    database["user"].create_index("email", unique=True)
    database["cart"].create_index("user_id", unique=True)
    database["wishlist"].create_index("user_id", unique=True)
    database["review"].create_index([("product_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
    logger.info("MongoDB indexes ensured")
