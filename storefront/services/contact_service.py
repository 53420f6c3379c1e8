# storefront/services/contact_service.py
import logging
import smtplib

from fastapi import HTTPException, status

from storefront.core.config import get_settings
from storefront.core.constants import ERROR_MESSAGES, STORE_INFO
from storefront.core.email_client import send_email
from storefront.schemas.contact import ContactCreate

logger = logging.getLogger(__name__)

CONTACT_TYPE_LABELS = {
    "general": "عمومی",
    "support": "پشتیبانی",
    "wholesale": "خرید عمده",
    "complaint": "شکایت",
}


class ContactService:
    """Delivers contact-page messages to the store inbox."""

    def send_message(self, payload: ContactCreate) -> None:
        """
        Raises:
            HTTPException(503): mail could not be sent.
        """
        settings = get_settings()
        body = "\n".join(
            [
                f"نوع پیام: {CONTACT_TYPE_LABELS[payload.type]}",
                f"نام: {payload.name}",
                f"ایمیل: {payload.email}",
                f"تلفن: {payload.phone or '-'}",
                "",
                payload.message,
            ]
        )
        try:
            send_email(
                to_email=settings.STORE_INBOX_EMAIL,
                subject=f"[{STORE_INFO['name']}] {payload.subject}",
                text_body=body,
                reply_to=payload.email,
            )
        except (RuntimeError, smtplib.SMTPException, OSError) as exc:
            logger.error("Contact message from %s not sent: %s", payload.email, exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=ERROR_MESSAGES["network"],
            )
        logger.info("Contact message (%s) from %s delivered", payload.type, payload.email)

    @staticmethod
    def store_info() -> dict:
        return STORE_INFO
