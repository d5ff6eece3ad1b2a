"""Per-product booking behaviour: which catalog table backs a booking type and how it is priced."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from annapurna.core.errors import NotFoundError, ValidationError
from annapurna.models.course import Course
from annapurna.models.health_program import HealthProgram
from annapurna.models.package import Package
from annapurna.models.retreat_program import RetreatProgram

HEALTH_PROGRAM_MODES = {"online", "residential", "dayVisitor"}


class BookingKind:
    type: str = ""
    label: str = ""
    model = None
    product_keys: tuple[str, ...] = ("productId",)
    missing_product_message = "Product is required"
    contact_field = "email"
    supports_accommodation = False
    per_person_accommodation = False
    visible_flag = "is_active"

    def read_product_id(self, payload: dict) -> str:
        for key in self.product_keys + ("productId",):
            value = payload.get(key)
            if value:
                return str(value)
        raise ValidationError(self.missing_product_message)

    def load_product(self, db: Session, product_id: str, visible_only: bool = False):
        """Look up by id, falling back to slug so public forms can post either.

        With `visible_only`, deactivated or unpublished products count as missing.
        """
        model = self.model
        product = db.execute(
            select(model).where(or_(model.id == product_id, model.slug == product_id))
        ).scalars().first()
        if not product or (visible_only and not getattr(product, self.visible_flag)):
            raise NotFoundError(f"{self.label} not found")
        return product

    def product_title(self, product) -> str:
        return product.title

    def catalog_price(self, product, mode: str | None) -> Decimal | None:
        raise NotImplementedError

    def default_nights(self, product) -> int | None:
        return None

    def hospital_premium_price(self, product) -> Decimal | None:
        return None

    def resolve_mode(self, product, mode: str | None) -> str | None:
        return mode or None

    def validate_contact(self, name: str, email: str, phone: str) -> None:
        if self.contact_field == "phone":
            if not name or not phone:
                raise ValidationError("Name and phone are required")
        elif not name or not email:
            raise ValidationError("Name and email are required")


class PackageKind(BookingKind):
    type = "package"
    label = "Package"
    model = Package
    product_keys = ("packageId",)
    missing_product_message = "Package is required"
    contact_field = "phone"
    supports_accommodation = True

    def product_title(self, product) -> str:
        return product.name

    def catalog_price(self, product, mode):
        return product.price

    def default_nights(self, product):
        return product.duration_days


class RetreatKind(BookingKind):
    type = "retreat"
    label = "Retreat program"
    model = RetreatProgram
    product_keys = ("programId", "retreatProgramId")
    missing_product_message = "Program is required"
    supports_accommodation = True
    per_person_accommodation = True

    def catalog_price(self, product, mode):
        return product.price_per_person_usd

    def default_nights(self, product):
        return product.duration_days

    def hospital_premium_price(self, product):
        return product.hospital_premium_price


class HealthProgramKind(BookingKind):
    type = "health_program"
    label = "Health program"
    model = HealthProgram
    visible_flag = "is_published"
    product_keys = ("programId", "healthProgramId")
    missing_product_message = "Program is required"

    def resolve_mode(self, product, mode):
        if not mode:
            raise ValidationError("Mode is required")
        if mode not in HEALTH_PROGRAM_MODES:
            raise ValidationError("Invalid mode")
        return mode

    def catalog_price(self, product, mode):
        return {
            "online": product.price_online,
            "residential": product.price_residential,
            "dayVisitor": product.price_day_visitor,
        }.get(mode or "")

    def default_nights(self, product):
        return product.duration_in_days


class CourseKind(BookingKind):
    type = "course"
    label = "Course"
    model = Course
    visible_flag = "is_published"
    product_keys = ("courseId",)
    missing_product_message = "Course is required"

    def resolve_mode(self, product, mode):
        return mode or product.mode

    def catalog_price(self, product, mode):
        return product.price

    def default_nights(self, product):
        return product.duration_days


KINDS: dict[str, BookingKind] = {
    kind.type: kind for kind in (PackageKind(), RetreatKind(), HealthProgramKind(), CourseKind())
}

# spellings used by the public site and the admin dashboard
TYPE_ALIASES = {
    "packages": "package",
    "retreats": "retreat",
    "healthProgram": "health_program",
    "health-program": "health_program",
    "healthprogram": "health_program",
    "courses": "course",
}


def get_kind(booking_type: str | None) -> BookingKind:
    key = TYPE_ALIASES.get(booking_type or "", booking_type or "")
    kind = KINDS.get(key)
    if kind is None:
        raise ValidationError("Invalid type")
    return kind
