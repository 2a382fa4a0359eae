from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from auth import AuthenticatedUser, require_admin
from database import create_document, get_db, get_documents, oid, to_str_id, utcnow
from schemas import Social, TeamMember

router = APIRouter(prefix="/api/team", tags=["team"])

MAX_HOME_MEMBERS = 4


class SocialUpdate(BaseModel):
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    youtube: Optional[str] = None


class ContactUpdate(BaseModel):
    phone: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1)
    social: Optional[SocialUpdate] = None


class TeamMemberUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    experience: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = Field(None, min_length=1)
    show_on_home: Optional[bool] = None
    contact: Optional[ContactUpdate] = None


def check_home_slots(exclude_id=None):
    query = {"show_on_home": True}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if get_db().team_member.count_documents(query) >= MAX_HOME_MEMBERS:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot add more than {MAX_HOME_MEMBERS} team members to be shown on home. "
                   "Please unmark another member first.",
        )


@router.get("")
def list_team():
    return [to_str_id(d) for d in get_documents("team_member", {})]


@router.get("/{member_id}")
def get_team_member(member_id: str):
    doc = get_db().team_member.find_one({"_id": oid(member_id, "Team Member ID")})
    if not doc:
        raise HTTPException(status_code=404, detail="Team Member not found.")
    return to_str_id(doc)


@router.post("", status_code=201)
def create_team_member(payload: TeamMember, admin: AuthenticatedUser = Depends(require_admin)):
    if payload.show_on_home:
        check_home_slots()
    member_id = create_document("team_member", payload)
    return to_str_id(get_db().team_member.find_one({"_id": oid(member_id)}))


@router.put("/{member_id}")
def update_team_member(member_id: str, payload: TeamMemberUpdate, admin: AuthenticatedUser = Depends(require_admin)):
    _id = oid(member_id, "Team Member ID")
    db = get_db()
    current = db.team_member.find_one({"_id": _id})
    if not current:
        raise HTTPException(status_code=404, detail="Team Member not found for update.")

    update_data = payload.model_dump(exclude_none=True, exclude={"contact"})
    if payload.show_on_home and not current.get("show_on_home"):
        check_home_slots(exclude_id=_id)

    if payload.contact is not None:
        contact = dict(current.get("contact") or {})
        contact.update(payload.contact.model_dump(exclude_none=True, exclude={"social"}))
        if payload.contact.social is not None:
            social = Social(**(contact.get("social") or {})).model_dump()
            social.update(payload.contact.social.model_dump(exclude_none=True))
            contact["social"] = social
        update_data["contact"] = contact

    update_data["updated_at"] = utcnow()
    db.team_member.update_one({"_id": _id}, {"$set": update_data})
    return to_str_id(db.team_member.find_one({"_id": _id}))


@router.delete("/{member_id}")
def delete_team_member(member_id: str, admin: AuthenticatedUser = Depends(require_admin)):
    res = get_db().team_member.delete_one({"_id": oid(member_id, "Team Member ID")})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Team Member not found for deletion.")
    return {"ok": True}
