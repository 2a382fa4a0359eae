"""
Authentication and authorization

Passwords are stored as bcrypt hashes. Sessions are stateless HS256 JWTs
carried in the Authorization header. The user's role travels inside the
token, so admin checks need no database lookup.
"""

import logging
from datetime import timedelta
from typing import Literal, Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from config import JWT_ALGORITHM, JWT_EXPIRES_MINUTES, JWT_SECRET
from database import utcnow

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: Literal["user", "admin"] = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash in the database
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(user: dict) -> str:
    """Issue a token for a user document (or any dict with id/_id, email, name, role)."""
    user_id = user.get("id") or user.get("_id")
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "email": user.get("email"),
        "name": user.get("name") or user.get("email"),
        "role": user.get("role", "user"),
        "iat": now,
        "exp": now + timedelta(minutes=JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> AuthenticatedUser:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated. Please log in.")
    try:
        token = jwt.decode(credentials.credentials, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Not authenticated. Please log in.")
    if not token.get("sub"):
        raise HTTPException(status_code=401, detail="Not authenticated. Please log in.")

    role = token.get("role") or "user"
    if role not in ("user", "admin"):
        role = "user"
    return AuthenticatedUser(
        id=token["sub"],
        email=token.get("email") or "",
        name=token.get("name"),
        role=role,
    )


def require_admin(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail='Forbidden. Requires "admin" role.')
    return user
