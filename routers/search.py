from typing import Optional

from fastapi import APIRouter

from database import get_db, icontains, to_str_id

router = APIRouter(prefix="/api/search", tags=["search"])

RESULT_LIMIT = 5


@router.get("")
def search(q: Optional[str] = None):
    if not q or not q.strip():
        return {"products": [], "pets": []}

    db = get_db()
    pattern = icontains(q)
    products = db.product.find({
        "$or": [{"name": pattern}, {"description": pattern}, {"category": pattern}]
    }).limit(RESULT_LIMIT)
    pets = db.pet.find({
        "$or": [{"name": pattern}, {"breed": pattern}, {"description": pattern}]
    }).limit(RESULT_LIMIT)

    return {
        "products": [to_str_id(p) for p in products],
        "pets": [to_str_id(p) for p in pets],
    }
