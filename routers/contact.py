from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from email_service import send_contact_message
from routers.reservations import EMAIL_RE

router = APIRouter(prefix="/api/contact", tags=["contact"])


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    message: Optional[str] = None


@router.post("")
def send_contact(payload: ContactRequest):
    if not payload.name or not payload.email or not payload.message:
        raise HTTPException(status_code=400, detail="Name, email, and message fields are required.")
    if not EMAIL_RE.match(payload.email.strip()):
        raise HTTPException(status_code=400, detail="Invalid email format.")

    ok, error = send_contact_message(payload.name, payload.email.strip(), payload.message, payload.website)
    if not ok:
        raise HTTPException(status_code=500, detail=error or "Failed to send email via Resend.")
    return {"ok": True, "message": "Message sent successfully!"}
