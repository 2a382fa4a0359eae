"""
Runtime configuration

Values are read from the environment once at import time. A local `.env`
file is loaded first so development setups don't need exported variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _csv(value: str):
    return [part.strip() for part in (value or "").split(",") if part.strip()]


# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "petshop")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is not set. Add it to the environment or the .env file.")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))
ADMIN_EMAILS = [e.lower() for e in _csv(os.getenv("ADMIN_EMAILS", ""))]

# Email (Resend)
RESEND_API_KEY = (os.getenv("RESEND_API_KEY") or "").strip()
EMAIL = (os.getenv("EMAIL") or "").strip()
EMAIL_FROM = os.getenv("EMAIL_FROM", "Pet Shop <onboarding@resend.dev>")

# Pricing
FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", "100"))
BASE_SHIPPING_COST = float(os.getenv("BASE_SHIPPING_COST", "7.50"))
SALES_TAX_RATE = float(os.getenv("SALES_TAX_RATE", "0.08"))

# Server
CORS_ALLOWED_ORIGINS = _csv(os.getenv("CORS_ALLOWED_ORIGINS", "")) or ["*"]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))

PLACEHOLDER_IMAGE = "/images/placeholder-product.jpg"
