import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from auth import AuthenticatedUser, create_access_token, get_current_user, hash_password, verify_password
from config import ADMIN_EMAILS
from database import create_document, get_db, oid, to_str_id, utcnow
from schemas import Address, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["users"])


def public_user(doc):
    doc = to_str_id(doc)
    if doc:
        doc.pop("password", None)
    return doc


class SignupRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    addresses: Optional[List[Address]] = None


@router.post("/auth/signup", status_code=201)
def signup(payload: SignupRequest):
    email = (payload.email or "").strip().lower()
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password required")

    db = get_db()
    if db.user.find_one({"email": email}):
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        email=email,
        password=hash_password(payload.password),
        name=payload.name,
        role="admin" if email in ADMIN_EMAILS else "user",
    )
    try:
        user_id = create_document("user", user)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info("Registered user %s (%s)", user_id, user.role)
    return {"id": user_id, "email": email}


@router.post("/auth/login")
def login(payload: LoginRequest):
    db = get_db()
    user = db.user.find_one({"email": payload.email.strip().lower()})
    if not user:
        raise HTTPException(status_code=401, detail="No user found with that email.")
    if not verify_password(payload.password, user.get("password", "")):
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": public_user(user),
    }


@router.get("/users/me")
def get_profile(current: AuthenticatedUser = Depends(get_current_user)):
    doc = get_db().user.find_one({"_id": oid(current.id, "User ID")})
    if not doc:
        raise HTTPException(status_code=404, detail="User not found.")
    return public_user(doc)


@router.put("/users/me")
def update_profile(payload: ProfileUpdate, current: AuthenticatedUser = Depends(get_current_user)):
    update_data = payload.model_dump(exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No update data provided.")

    if payload.addresses is not None:
        for address in payload.addresses:
            if not address.is_complete():
                raise HTTPException(status_code=400, detail="Incomplete address details provided.")

    db = get_db()
    user_id = oid(current.id, "User ID")
    if "email" in update_data:
        update_data["email"] = update_data["email"].strip().lower()
        if not update_data["email"]:
            raise HTTPException(status_code=400, detail="Email cannot be empty.")
        clash = db.user.find_one({"email": update_data["email"], "_id": {"$ne": user_id}})
        if clash:
            raise HTTPException(status_code=409, detail="Email already in use.")

    update_data["updated_at"] = utcnow()
    try:
        res = db.user.update_one({"_id": user_id}, {"$set": update_data})
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Email already in use.")
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="User not found for update.")
    return public_user(db.user.find_one({"_id": user_id}))
