from fastapi import APIRouter
from annapurna.api.routes.auth import router as auth_router
from annapurna.api.routes.bookings import routers as booking_routers
from annapurna.api.routes.payments import router as payments_router
from annapurna.api.routes.admin_payments import router as admin_payments_router
from annapurna.api.routes.catalog import routers as catalog_routers

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
for r in booking_routers:
    api_router.include_router(r)
api_router.include_router(payments_router)
api_router.include_router(admin_payments_router)
for r in catalog_routers:
    api_router.include_router(r)
