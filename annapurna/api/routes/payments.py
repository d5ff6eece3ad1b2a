import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from typing import Optional
from sqlalchemy.orm import Session

from annapurna.api.deps import get_notifier, get_payment_gateway
from annapurna.core.errors import AppError, ServerError
from annapurna.db.session import get_db
from annapurna.schemas.booking import booking_to_dict
from annapurna.services.checkout_service import create_stripe_checkout, handle_stripe_event, mark_payment_status
from annapurna.services.notification_service import Notifier
from annapurna.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


class CheckoutRequest(BaseModel):
    bookingId: Optional[str] = None
    type: Optional[str] = None


class MarkStatusRequest(BaseModel):
    bookingId: Optional[str] = None
    type: Optional[str] = None
    status: str


@router.post("/stripe/checkout")
def stripe_checkout(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    result = create_stripe_checkout(db, gateway, body.bookingId or "", body.type or "")
    return {"success": True, "url": result["url"], "sessionId": result["sessionId"]}


@router.post("/mark-status")
def mark_status(body: MarkStatusRequest, db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    try:
        booking = mark_payment_status(db, notifier, body.bookingId or "", body.type or "", body.status, source="client")
    except AppError:
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("Payment status update failed for booking %s", body.bookingId)
        raise ServerError(f"Failed to update payment status: {exc}") from exc
    return {"success": True, "data": booking_to_dict(booking)}


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    payload = await request.body()
    event = gateway.construct_event(payload, request.headers.get("stripe-signature"))
    return handle_stripe_event(db, notifier, event)
