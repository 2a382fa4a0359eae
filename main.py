import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import database
from config import CORS_ALLOWED_ORIGINS, DATABASE_NAME, DATABASE_URL, LOG_LEVEL, PORT
from routers import (
    admin_router,
    cart_router,
    contact_router,
    gallery_router,
    orders_router,
    pets_router,
    products_router,
    reservations_router,
    search_router,
    team_router,
    users_router,
    wishlist_router,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        database.ensure_indexes()
    else:
        logger.warning("DATABASE_URL not set, running without a database")
    yield


app = FastAPI(title="Pet Shop API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (
    users_router,
    products_router,
    pets_router,
    cart_router,
    wishlist_router,
    orders_router,
    gallery_router,
    team_router,
    reservations_router,
    contact_router,
    search_router,
    admin_router,
):
    app.include_router(router)


# ---------------------------------------------------------------------------------
# Health and info
# ---------------------------------------------------------------------------------
@app.get("/")
def read_root():
    return {"message": "Pet Shop API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if DATABASE_URL else "❌ Not Set",
        "database_name": "✅ Set" if DATABASE_NAME else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }

    db = database.db
    if db is None:
        response["database"] = "⚠️  Available but not initialized"
        return response

    response["database"] = "✅ Available"
    response["connection_status"] = "Connected"
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        logger.exception("Database health check failed")
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
