"""Contact form endpoint."""

import logging

from fastapi import APIRouter, Request

from docmarket.errors import ServerError
from docmarket.rate_limit import limiter
from docmarket.schemas.contact import ContactRequest, ContactResponse
from docmarket.services.mailer import MailDeliveryError, get_mailer

logger = logging.getLogger("docmarket")

router = APIRouter(prefix="/api/contact", tags=["Contact"])


@router.post("/send", response_model=ContactResponse)
@limiter.limit("5/minute")
def send_contact_message(request: Request, body: ContactRequest) -> ContactResponse:
    """Forward a contact form submission to the site inbox."""
    try:
        sent = get_mailer().send_contact_message(body.name, body.email, body.subject, body.message)
    except MailDeliveryError:
        logger.exception("Error sending contact email from %s", body.email)
        sent = False

    if not sent:
        raise ServerError("Failed to send message. Please try again.")
    return ContactResponse(success=True, message="Message sent successfully")
