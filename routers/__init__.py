from routers.admin import router as admin_router
from routers.cart import router as cart_router
from routers.contact import router as contact_router
from routers.gallery import router as gallery_router
from routers.orders import router as orders_router
from routers.pets import router as pets_router
from routers.products import router as products_router
from routers.reservations import router as reservations_router
from routers.search import router as search_router
from routers.team import router as team_router
from routers.users import router as users_router
from routers.wishlist import router as wishlist_router

__all__ = [
    "admin_router",
    "cart_router",
    "contact_router",
    "gallery_router",
    "orders_router",
    "pets_router",
    "products_router",
    "reservations_router",
    "search_router",
    "team_router",
    "users_router",
    "wishlist_router",
]
