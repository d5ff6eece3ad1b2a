from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from annapurna.api.deps import get_notifier, require_admin
from annapurna.db.session import get_db
from annapurna.models.user import User
from annapurna.schemas.booking import (
    AdminBookingIn,
    BookingIn,
    BookingStatusUpdate,
    booking_to_dict,
    payload_of,
)
from annapurna.services.booking_kinds import KINDS, BookingKind
from annapurna.services.booking_service import BookingService
from annapurna.services.notification_service import Notifier

BOOKING_PREFIXES = {
    "package": "/package-bookings",
    "retreat": "/retreat-bookings",
    "health_program": "/health-program-bookings",
    "course": "/course-bookings",
}


def build_booking_router(kind: BookingKind, prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[f"{kind.type}-bookings"])

    @router.post("", status_code=201)
    def create_booking(body: BookingIn, db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
        booking = BookingService(db, kind, notifier).create(payload_of(body))
        return {"success": True, "data": booking_to_dict(booking)}

    @router.post("/admin", status_code=201)
    def create_admin_booking(
        body: AdminBookingIn,
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        admin: User = Depends(require_admin),
    ):
        booking = BookingService(db, kind, notifier, actor=admin.id).create(
            payload_of(body), admin=True, notify=body.notifyCustomer
        )
        return {"success": True, "data": booking_to_dict(booking)}

    @router.get("")
    def list_bookings(
        status: str | None = None,
        paymentStatus: str | None = None,
        q: str | None = None,
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        admin: User = Depends(require_admin),
    ):
        items = BookingService(db, kind, notifier, actor=admin.id).list(status, paymentStatus, q)
        return {"success": True, "data": [booking_to_dict(b) for b in items], "count": len(items)}

    @router.get("/{booking_id}")
    def get_booking(
        booking_id: str,
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        admin: User = Depends(require_admin),
    ):
        booking = BookingService(db, kind, notifier, actor=admin.id).get(booking_id)
        return {"success": True, "data": booking_to_dict(booking)}

    @router.patch("/{booking_id}/status")
    def update_booking_status(
        booking_id: str,
        body: BookingStatusUpdate,
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        admin: User = Depends(require_admin),
    ):
        booking = BookingService(db, kind, notifier, actor=admin.id).update_status(
            booking_id, payload_of(body), notify=body.notifyCustomer
        )
        return {"success": True, "data": booking_to_dict(booking)}

    @router.put("/{booking_id}")
    def update_booking(
        booking_id: str,
        body: AdminBookingIn,
        force: bool = Query(default=False),
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        admin: User = Depends(require_admin),
    ):
        booking = BookingService(db, kind, notifier, actor=admin.id).update(
            booking_id, payload_of(body), force=force, notify=body.notifyCustomer
        )
        return {"success": True, "data": booking_to_dict(booking)}

    @router.delete("/{booking_id}")
    def delete_booking(
        booking_id: str,
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        admin: User = Depends(require_admin),
    ):
        BookingService(db, kind, notifier, actor=admin.id).remove(booking_id)
        return {"success": True, "message": "Booking deleted"}

    return router


routers = [build_booking_router(KINDS[t], prefix) for t, prefix in BOOKING_PREFIXES.items()]
