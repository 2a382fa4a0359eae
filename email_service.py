"""
Transactional email through Resend

Every sender returns (ok, error) instead of raising, callers decide whether a
failed email should fail the request.
"""

import logging
from html import escape
from typing import Dict, List, Optional, Tuple

import resend

from config import EMAIL, EMAIL_FROM, RESEND_API_KEY

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, html: str, sender: Optional[str] = None) -> Tuple[bool, Optional[str]]:
    if not RESEND_API_KEY:
        return False, "Resend API key is not configured."
    if not to:
        return False, "Missing recipient address."

    resend.api_key = RESEND_API_KEY
    payload: Dict[str, object] = {
        "from": sender or EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    try:
        response = resend.Emails.send(payload)
    except Exception as exc:
        logger.exception("Resend email sending error")
        return False, str(exc)

    if not isinstance(response, dict) or not response.get("id"):
        logger.error("Unexpected Resend response: %s", response)
        return False, str(response)

    logger.info("Email '%s' sent to %s (%s)", subject, to, response.get("id"))
    return True, None


# ---------------------------------------------------------------------------------
# Store inbox notifications
# ---------------------------------------------------------------------------------

def send_contact_message(name: str, email: str, message: str, website: Optional[str] = None):
    website_html = ""
    if website:
        website_html = (
            f'<p><strong>Website:</strong> <a href="{escape(website)}" target="_blank">{escape(website)}</a></p>'
        )
    html = f"""
      <p><strong>Name:</strong> {escape(name)}</p>
      <p><strong>Email:</strong> {escape(email)}</p>
      {website_html}
      <p><strong>Message:</strong><br/>{escape(message)}</p>
    """
    return send_email(
        EMAIL,
        f"New Contact Form Submission from {name}",
        html,
        sender="Contact Form <onboarding@resend.dev>",
    )


def send_reservation_request(reservation: dict):
    note = reservation.get("special_note")
    note_html = f"<li><strong>Special Note:</strong><br/>{escape(note)}</li>" if note else ""
    html = f"""
      <p><strong>New Appointment Request:</strong></p>
      <ul>
        <li><strong>Full Name:</strong> {escape(reservation['full_name'])}</li>
        <li><strong>Email:</strong> {escape(reservation['email'])}</li>
        <li><strong>Phone:</strong> {escape(reservation['phone'])}</li>
        <li><strong>Requested Date:</strong> {escape(reservation['date'])}</li>
        <li><strong>Pet Species:</strong> {escape(reservation['species'])}</li>
        <li><strong>Pet Breed:</strong> {escape(reservation['breed'])}</li>
        <li><strong>Reason for Appointment:</strong> {escape(reservation['reason'])}</li>
        {note_html}
      </ul>
      <p>Please log in to your dashboard to confirm or reschedule this appointment.</p>
    """
    return send_email(
        EMAIL,
        f"New Pet Appointment Request from {reservation['full_name']} for {reservation['species']}",
        html,
        sender="Reservation Form <onboarding@resend.dev>",
    )


# ---------------------------------------------------------------------------------
# Client notifications
# ---------------------------------------------------------------------------------

def _appointment_details(reservation: dict) -> str:
    return f"""
      <p><strong>Appointment Details:</strong></p>
      <ul>
        <li><strong>Requested Date:</strong> {escape(reservation.get('date', ''))}</li>
        <li><strong>Pet Species:</strong> {escape(reservation.get('species', ''))}</li>
        <li><strong>Pet Breed:</strong> {escape(reservation.get('breed', ''))}</li>
        <li><strong>Reason for Appointment:</strong> {escape(reservation.get('reason', ''))}</li>
        <li><strong>Your Email:</strong> {escape(reservation.get('email', ''))}</li>
        <li><strong>Your Phone:</strong> {escape(reservation.get('phone', ''))}</li>
        <li><strong>Admin Notes:</strong> {escape(reservation.get('admin_notes') or 'N/A')}</li>
      </ul>
    """


def send_reservation_status(reservation: dict, status: str, deleted: bool = False):
    """Tell the client their appointment was confirmed or cancelled. Other statuses send nothing."""
    name = escape(reservation.get("full_name", ""))
    species = reservation.get("species", "")
    date = escape(reservation.get("date", ""))

    if deleted:
        subject = f"Important: Your Pet Appointment for {species} has been Cancelled"
        body = (
            f"<p>Dear {name},</p>"
            "<p>This is an important update regarding your pet appointment.</p>"
            f"<p>Your appointment scheduled for <strong>{date}</strong> has been <strong>cancelled</strong>.</p>"
            f"{_appointment_details(reservation)}"
            "<p>This cancellation is due to direct deletion from our system. If you wish to reschedule, "
            "please visit our website or contact us directly.</p>"
            "<p>We apologize for any inconvenience this may cause.</p>"
        )
    elif status == "confirmed":
        subject = f"Your Pet Appointment for {species} is Confirmed!"
        body = (
            f"<p>Dear {name},</p>"
            "<p>We are pleased to inform you that your pet appointment has been <strong>confirmed</strong>!</p>"
            f"{_appointment_details(reservation)}"
            f"<p>We look forward to seeing you and {escape(species)} on {date}.</p>"
            "<p>If you have any questions, please contact us.</p>"
        )
    elif status == "cancelled":
        subject = f"Update: Your Pet Appointment for {species} has been Cancelled"
        body = (
            f"<p>Dear {name},</p>"
            f"<p>We regret to inform you that your pet appointment scheduled for <strong>{date}</strong> "
            "has been <strong>cancelled</strong>.</p>"
            f"{_appointment_details(reservation)}"
            "<p>If you wish to reschedule, please visit our website or contact us directly.</p>"
            "<p>We apologize for any inconvenience this may cause.</p>"
        )
    else:
        return False, None

    return send_email(reservation.get("email", ""), subject, body, sender="Pet Clinic <onboarding@resend.dev>")


def send_order_confirmation(order: dict, recipient_email: str):
    items: List[dict] = order.get("items") or []
    rows = "".join(
        f"<li>{escape(item['name'])} x{item['quantity']} (${item['price']:.2f})</li>"
        for item in items
    )
    html = f"""
      <p>Thank you for your purchase!</p>
      <p><strong>Order:</strong> {escape(str(order.get('id', '')))}</p>
      <ul>{rows}</ul>
      <p>Subtotal: ${order.get('subtotal', 0):.2f}<br/>
         Shipping: ${order.get('shipping_price', 0):.2f}<br/>
         Tax: ${order.get('tax_price', 0):.2f}<br/>
         <strong>Total: ${order.get('total_price', 0):.2f}</strong></p>
    """
    return send_email(recipient_email, "Thank you for your order", html)
