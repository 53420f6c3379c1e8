# storefront/routers/contact.py
from fastapi import APIRouter

from storefront.core.constants import SUCCESS_MESSAGES
from storefront.schemas.auth import MessageRead
from storefront.schemas.contact import ContactCreate
from storefront.services.contact_service import ContactService

router = APIRouter(tags=["Contact"])

service = ContactService()


@router.get("/about")
def about() -> dict:
    """
    Store name, description, contact details, working hours and social
    links.
    """
    return service.store_info()


@router.post("/contact", response_model=MessageRead)
def send_contact_message(payload: ContactCreate):
    """
    Contact form. The message is mailed to the store inbox with the
    sender's address as Reply-To.
    """
    service.send_message(payload)
    return MessageRead(message=SUCCESS_MESSAGES["contact"])
