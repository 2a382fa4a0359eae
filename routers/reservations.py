import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from auth import AuthenticatedUser, require_admin
from database import create_document, get_db, oid, paginate, to_str_id, utcnow
from email_service import send_reservation_request, send_reservation_status
from schemas import Reservation, ReservationStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reservation", tags=["reservations"])

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-()]{7,}$")
DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")


class ReservationRequest(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date: Optional[str] = None
    species: Optional[str] = None
    breed: Optional[str] = None
    reason: Optional[str] = None
    special_note: Optional[str] = None


class ReservationUpdate(BaseModel):
    status: Optional[ReservationStatus] = None
    admin_notes: Optional[str] = None


@router.post("", status_code=201)
def create_reservation(payload: ReservationRequest):
    required = ("full_name", "email", "phone", "date", "species", "breed", "reason")
    data = {k: (v.strip() if isinstance(v, str) else v) for k, v in payload.model_dump().items()}
    if not all(data.get(k) for k in required):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: Full Name, Email, Phone, Date, Species, Breed, and Reason are all mandatory.",
        )
    if not EMAIL_RE.match(data["email"]):
        raise HTTPException(status_code=400, detail="Invalid email format.")
    if not PHONE_RE.match(data["phone"]):
        raise HTTPException(status_code=400, detail="Invalid phone number format.")
    if not DATE_RE.match(data["date"]):
        raise HTTPException(status_code=400, detail="Date format must be dd/mm/yyyy.")

    reservation = Reservation(**data, status="pending")
    reservation_id = create_document("reservation", reservation)
    logger.info("Reservation %s saved for %s", reservation_id, reservation.email)

    ok, error = send_reservation_request(reservation.model_dump())
    if not ok:
        logger.error("Reservation %s saved but store notification failed: %s", reservation_id, error)
        raise HTTPException(status_code=500, detail="Reservation saved, but failed to send confirmation email.")

    doc = get_db().reservation.find_one({"_id": oid(reservation_id)})
    return {"message": "Appointment request sent successfully!", "data": to_str_id(doc)}


@router.get("")
def list_reservations(status: Optional[ReservationStatus] = None, page: int = 1, limit: int = 15,
                      admin: AuthenticatedUser = Depends(require_admin)):
    query = {"status": status} if status else {}
    docs, pagination = paginate("reservation", query, page, limit)
    return {"data": [to_str_id(d) for d in docs], "pagination": pagination}


@router.put("/{reservation_id}")
def update_reservation(reservation_id: str, payload: ReservationUpdate,
                       admin: AuthenticatedUser = Depends(require_admin)):
    _id = oid(reservation_id, "Reservation ID")
    db = get_db()
    previous = db.reservation.find_one({"_id": _id})
    if not previous:
        raise HTTPException(status_code=404, detail="Reservation not found.")

    updates = payload.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields provided for update.")
    updates["updated_at"] = utcnow()

    db.reservation.update_one({"_id": _id}, {"$set": updates})
    updated = db.reservation.find_one({"_id": _id})

    if updated["status"] != previous.get("status") and updated["status"] in ("confirmed", "cancelled"):
        ok, error = send_reservation_status(updated, updated["status"])
        if not ok:
            logger.error("Status email for reservation %s failed: %s", reservation_id, error)

    return to_str_id(updated)


@router.delete("/{reservation_id}")
def delete_reservation(reservation_id: str, admin: AuthenticatedUser = Depends(require_admin)):
    _id = oid(reservation_id, "Reservation ID")
    db = get_db()
    reservation = db.reservation.find_one({"_id": _id})
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found.")

    res = db.reservation.delete_one({"_id": _id})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Reservation not found or already deleted.")

    ok, error = send_reservation_status(reservation, "cancelled", deleted=True)
    if not ok:
        logger.error("Deletion email for reservation %s failed: %s", reservation_id, error)
    return {"ok": True, "message": "Reservation deleted successfully and client notified."}
