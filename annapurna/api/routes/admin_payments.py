from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from annapurna.api.deps import get_notifier, require_admin
from annapurna.db.session import get_db
from annapurna.models.user import User
from annapurna.services import payment_admin_service as svc
from annapurna.services.notification_service import Notifier

router = APIRouter(prefix="/admin/payments", tags=["admin-payments"])


class PaymentStatusUpdate(BaseModel):
    status: str


def _filters(
    status: str | None = None,
    bookingType: str | None = None,
    email: str | None = None,
    startDate: str | None = None,
    endDate: str | None = None,
) -> svc.PaymentFilters:
    return svc.build_filters(status, bookingType, email, startDate, endDate)


def _export_name(ext: str) -> str:
    return f"payments-{datetime.now(timezone.utc).strftime('%Y%m%d')}.{ext}"


@router.get("")
def list_payments(
    filters: svc.PaymentFilters = Depends(_filters),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = svc.list_payments(db, filters)
    return {
        "success": True,
        "data": [svc.payment_to_dict(p) for p in result["items"]],
        "totals": result["totals"],
    }


@router.get("/export/csv")
def export_csv(
    filters: svc.PaymentFilters = Depends(_filters),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return Response(
        content=svc.export_csv(db, filters),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{_export_name("csv")}"'},
    )


@router.get("/export/pdf")
def export_pdf(
    filters: svc.PaymentFilters = Depends(_filters),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return Response(
        content=svc.export_pdf(db, filters),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_export_name("pdf")}"'},
    )


@router.get("/{payment_id}")
def get_payment(payment_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return {"success": True, "data": svc.get_payment_detail(db, payment_id)}


@router.patch("/{payment_id}/status")
def update_payment_status(
    payment_id: str,
    body: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    admin: User = Depends(require_admin),
):
    payment = svc.update_payment_status(db, notifier, payment_id, body.status, actor=admin.id)
    return {"success": True, "data": svc.payment_to_dict(payment)}


@router.patch("/{payment_id}/cancel")
def cancel_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    admin: User = Depends(require_admin),
):
    payment = svc.cancel_payment(db, notifier, payment_id, actor=admin.id)
    return {"success": True, "data": svc.payment_to_dict(payment)}


@router.patch("/{payment_id}/mark-paid")
def mark_paid(
    payment_id: str,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    admin: User = Depends(require_admin),
):
    payment = svc.mark_paid(db, notifier, payment_id, actor=admin.id)
    return {"success": True, "data": svc.payment_to_dict(payment)}
