from annapurna.core.errors import ValidationError

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed", "rescheduled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "cancelled", "refunded")

TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "cancelled", "rescheduled", "completed"},
    "confirmed": {"completed", "cancelled", "rescheduled"},
    "rescheduled": {"confirmed", "cancelled", "completed", "rescheduled"},
    "cancelled": {"pending", "confirmed"},
    "completed": set(),
}


def validate_status(status: str) -> str:
    if status not in BOOKING_STATUSES:
        raise ValidationError("Invalid status")
    return status


def validate_payment_status(status: str) -> str:
    if status not in PAYMENT_STATUSES:
        raise ValidationError("Invalid payment status")
    return status


def check_transition(current: str, target: str, *, admin_message: str = "", new_date: str | None = None) -> None:
    validate_status(target)
    if target != current and target not in TRANSITIONS.get(current, set()):
        raise ValidationError(f"Cannot change status from {current} to {target}")
    if target == "cancelled" and target != current and not (admin_message or "").strip():
        raise ValidationError("Cancellation message is required")
    if target == "rescheduled" and not (new_date or "").strip():
        raise ValidationError("New date is required for reschedule")
