from html import escape

from annapurna.core.config import settings

TYPE_LABELS = {
    "package": "package",
    "retreat": "retreat",
    "health_program": "health program",
    "course": "course",
}

STATUS_LINES = {
    "pending": "We have received your booking request and will contact you shortly.",
    "confirmed": "Your booking is confirmed. We look forward to welcoming you.",
    "cancelled": "Your booking has been cancelled.",
    "completed": "Thank you for staying with us. Your booking is marked as completed.",
    "rescheduled": "Your booking has been rescheduled.",
}

PAYMENT_LINES = {
    "paid": "We have received your payment.",
    "failed": "Your payment did not go through. You can retry from the booking page.",
    "cancelled": "Your payment was cancelled.",
}


def render_booking_email(context: dict) -> tuple[str, str, str]:
    """Return (subject, text body, html body) for a booking notification."""
    booking = context["booking"]
    event = context.get("event", "status")
    kind = TYPE_LABELS.get(booking.get("bookingType"), "booking")
    title = booking.get("productTitle") or kind.title()
    status = booking.get("status", "pending")
    payment_status = booking.get("paymentStatus", "pending")

    if event == "payment":
        subject = f"{settings.ORG_NAME}: payment update for your {kind} booking"
        headline = PAYMENT_LINES.get(payment_status, f"Payment status: {payment_status}.")
    elif event == "created":
        subject = f"{settings.ORG_NAME}: your {kind} booking request"
        headline = STATUS_LINES.get(status, STATUS_LINES["pending"])
    else:
        subject = f"{settings.ORG_NAME}: your {kind} booking is {status}"
        headline = STATUS_LINES.get(status, f"Booking status: {status}.")

    lines = [
        f"Dear {booking.get('name') or 'guest'},",
        "",
        headline,
        "",
        f"Booking: {title}",
        f"Reference: {booking.get('id')}",
        f"People: {booking.get('quantity')}",
    ]
    if booking.get("preferredStartDate"):
        lines.append(f"Preferred start date: {booking['preferredStartDate']}")
    lines.append(f"Total: {booking.get('totalAmount', 0):.2f} {settings.PAYMENT_CURRENCY}")
    if booking.get("adminMessage"):
        lines += ["", f"Message from our team: {booking['adminMessage']}"]
    lines += ["", settings.ORG_NAME]
    text = "\n".join(lines)

    html = "".join(f"<p>{escape(line)}</p>" if line else "<br>" for line in lines)
    return subject, text, html
