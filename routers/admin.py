import logging

from fastapi import APIRouter, Depends

from auth import AuthenticatedUser, require_admin
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

STAT_COLLECTIONS = {
    "total_users": "user",
    "total_products": "product",
    "total_orders": "order",
    "total_pets": "pet",
    "total_team_members": "team_member",
    "total_gallery_images": "gallery_image",
}


@router.get("/stats")
def dashboard_stats(admin: AuthenticatedUser = Depends(require_admin)):
    db = get_db()
    stats = {key: db[name].count_documents({}) for key, name in STAT_COLLECTIONS.items()}
    logger.debug("Dashboard stats for %s: %s", admin.email, stats)
    return stats
