import logging
from decimal import Decimal, ROUND_HALF_UP

import stripe

from annapurna.core.config import settings
from annapurna.core.errors import GatewayError, ValidationError

logger = logging.getLogger(__name__)


def to_cents(amount: Decimal) -> int:
    """Convert Decimal dollars to integer cents, rounding half up."""
    return int((Decimal(amount) * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway:
    """Thin wrapper over the Stripe SDK calls the checkout flow needs."""

    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None):
        self.secret_key = settings.STRIPE_SECRET_KEY if secret_key is None else secret_key
        self.webhook_secret = settings.STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret

    def _require_key(self) -> None:
        if not self.secret_key:
            raise GatewayError("Stripe not configured")
        stripe.api_key = self.secret_key

    def create_checkout_session(
        self,
        *,
        amount_cents: int,
        currency: str,
        product_name: str,
        description: str,
        booking_id: str,
        booking_type: str,
        customer_email: str | None,
        success_url: str,
        cancel_url: str,
    ) -> dict:
        self._require_key()
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": {"name": product_name, "description": description},
                        "unit_amount": amount_cents,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {"bookingId": booking_id, "type": booking_type},
        }
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as exc:
            logger.error("Stripe checkout session failed for booking %s: %s", booking_id, exc)
            raise GatewayError(getattr(exc, "user_message", None) or "Payment provider error", status_code=502) from exc
        return {"id": session["id"], "url": session["url"]}

    def construct_event(self, payload: bytes, signature: str | None):
        if not self.webhook_secret:
            raise GatewayError("Stripe webhook not configured")
        if not signature:
            raise ValidationError("Missing Stripe signature")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Rejected Stripe webhook with bad signature")
            raise ValidationError("Invalid signature") from exc
        except ValueError as exc:
            raise ValidationError("Invalid payload") from exc
