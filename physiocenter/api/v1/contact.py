from fastapi import APIRouter, Depends, HTTPException, status

from ...api.deps import rate_limit_check
from ...services.email_service import EmailService, get_email_service
from ...schemas.common import ApiResponse, json_response
from ...schemas.contact import ContactMessage

router = APIRouter(prefix="/contact", tags=["Contact"])

@router.post("", response_model=ApiResponse)
async def send_contact_message(
    contact: ContactMessage,
    mailer: EmailService = Depends(get_email_service),
    _: None = Depends(rate_limit_check)
):
    """Forward a contact form message to the clinic address."""
    sent = mailer.send_contact_message(contact.name, contact.email, contact.subject, contact.message)
    if not sent:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="The email could not be sent"
        )

    return json_response("Your message has been sent. We will get back to you shortly.")
