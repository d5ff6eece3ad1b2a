"""Admin-managed catalog: the products bookings are priced from, and partner hotels."""
import re
import uuid
import logging
import unicodedata
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from annapurna.core.errors import NotFoundError, ValidationError
from annapurna.models.course import Course
from annapurna.models.health_program import HealthProgram
from annapurna.models.package import Package
from annapurna.models.partner_hotel import PartnerHotel
from annapurna.models.retreat_program import RetreatProgram
from annapurna.services.pricing_service import parse_amount, parse_count

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    ascii_text = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-") or "item"


def unique_slug(db: Session, model, title: str, exclude_id: str | None = None) -> str:
    base = slugify(title)
    slug, n = base, 2
    while True:
        stmt = select(model.id).where(model.slug == slug)
        if exclude_id:
            stmt = stmt.where(model.id != exclude_id)
        if db.execute(stmt).first() is None:
            return slug
        slug = f"{base}-{n}"
        n += 1


# field kinds: str, money, int, bool
@dataclass
class CatalogResource:
    name: str
    label: str
    model: type
    title_field: str | None
    fields: dict[str, tuple[str, str]]
    visible_flag: str

    def to_dict(self, obj) -> dict:
        data = {"id": obj.id}
        if self.title_field:
            data["slug"] = obj.slug
        for key, (attr, kind) in self.fields.items():
            value = getattr(obj, attr)
            data[key] = float(value) if kind == "money" and value is not None else value
        data["createdAt"] = obj.created_at.isoformat() if obj.created_at else None
        return data


RESOURCES = {
    r.name: r
    for r in (
        CatalogResource("packages", "Package", Package, "name", {
            "name": ("name", "str"),
            "summary": ("summary", "str"),
            "price": ("price", "money"),
            "durationDays": ("duration_days", "int"),
            "isActive": ("is_active", "bool"),
        }, "is_active"),
        CatalogResource("retreat-programs", "Retreat program", RetreatProgram, "title", {
            "title": ("title", "str"),
            "summary": ("summary", "str"),
            "pricePerPersonUSD": ("price_per_person_usd", "money"),
            "durationDays": ("duration_days", "int"),
            "hospitalPremiumPrice": ("hospital_premium_price", "money"),
            "isActive": ("is_active", "bool"),
        }, "is_active"),
        CatalogResource("health-programs", "Health program", HealthProgram, "title", {
            "title": ("title", "str"),
            "summary": ("summary", "str"),
            "durationInDays": ("duration_in_days", "int"),
            "priceOnline": ("price_online", "money"),
            "priceResidential": ("price_residential", "money"),
            "priceDayVisitor": ("price_day_visitor", "money"),
            "isPublished": ("is_published", "bool"),
        }, "is_published"),
        CatalogResource("courses", "Course", Course, "title", {
            "title": ("title", "str"),
            "summary": ("summary", "str"),
            "price": ("price", "money"),
            "durationDays": ("duration_days", "int"),
            "mode": ("mode", "str"),
            "isPublished": ("is_published", "bool"),
        }, "is_published"),
        CatalogResource("partner-hotels", "Partner hotel", PartnerHotel, None, {
            "name": ("name", "str"),
            "location": ("location", "str"),
            "starRating": ("star_rating", "int"),
            "pricePerNight": ("price_per_night", "money"),
            "isActive": ("is_active", "bool"),
        }, "is_active"),
    )
}


TRUE_WORDS = {"true", "1", "yes", "on"}
FALSE_WORDS = {"false", "0", "no", "off"}


def parse_flag(value, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in TRUE_WORDS | FALSE_WORDS:
        return value.strip().lower() in TRUE_WORDS
    raise ValidationError(f"{field_name} must be true or false")


def _coerce(key: str, kind: str, value):
    if kind == "money":
        return parse_amount(value, key)
    if kind == "int":
        return parse_count(value, key)
    if kind == "bool":
        return parse_flag(value, key)
    return (value or "").strip() if isinstance(value, str) else value


def _apply(resource: CatalogResource, obj, payload: dict) -> None:
    for key, (attr, kind) in resource.fields.items():
        if key in payload:
            setattr(obj, attr, _coerce(key, kind, payload[key]))
    if resource.model is PartnerHotel:
        if obj.star_rating not in (3, 4, 5):
            raise ValidationError("starRating must be 3, 4 or 5")
        if obj.price_per_night is None:
            raise ValidationError("pricePerNight is required")
    if resource.model is Course and obj.mode not in (None, "online", "residential"):
        raise ValidationError("Invalid mode")


def list_items(db: Session, resource: CatalogResource, include_hidden: bool = False) -> list:
    stmt = select(resource.model)
    if not include_hidden:
        stmt = stmt.where(getattr(resource.model, resource.visible_flag).is_(True))
    if resource.model is PartnerHotel:
        stmt = stmt.order_by(PartnerHotel.location, PartnerHotel.price_per_night)
    else:
        stmt = stmt.order_by(resource.model.created_at.desc())
    return list(db.execute(stmt).scalars().all())


def get_item(db: Session, resource: CatalogResource, key: str):
    model = resource.model
    cond = model.id == key
    if resource.title_field:
        cond = or_(cond, model.slug == key)
    obj = db.execute(select(model).where(cond)).scalars().first()
    if not obj:
        raise NotFoundError(f"{resource.label} not found")
    return obj


def create_item(db: Session, resource: CatalogResource, payload: dict):
    if resource.title_field and not (payload.get(resource.title_field) or "").strip():
        raise ValidationError(f"{resource.title_field.capitalize()} is required")
    obj = resource.model(id=str(uuid.uuid4()))
    if resource.model is PartnerHotel and not (payload.get("name") and payload.get("location")):
        raise ValidationError("Name and location are required")
    for _, (attr, kind) in resource.fields.items():
        if kind == "bool":
            setattr(obj, attr, True)
    _apply(resource, obj, payload)
    if resource.title_field:
        obj.slug = unique_slug(db, resource.model, payload.get("slug") or getattr(obj, resource.title_field))
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("Created %s %s", resource.name, obj.id)
    return obj


def update_item(db: Session, resource: CatalogResource, item_id: str, payload: dict):
    obj = get_item(db, resource, item_id)
    _apply(resource, obj, payload)
    if resource.title_field and (payload.get("slug") or resource.title_field in payload):
        obj.slug = unique_slug(db, resource.model, payload.get("slug") or getattr(obj, resource.title_field), exclude_id=obj.id)
    db.commit()
    db.refresh(obj)
    return obj


def delete_item(db: Session, resource: CatalogResource, item_id: str) -> None:
    obj = get_item(db, resource, item_id)
    db.delete(obj)
    db.commit()
    logger.info("Deleted %s %s", resource.name, item_id)
