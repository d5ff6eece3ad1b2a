import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from annapurna.core.config import settings
from annapurna.core.errors import register_error_handlers
from annapurna.core.logging import configure_logging
from annapurna.api.api import api_router
from annapurna.db.session import SessionLocal
from annapurna.services.notification_service import EmailNotifier, NullNotifier

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# CORS: use CORS_ORIGINS from env in production; default to localhost for dev
_default_origins = [
    "http://127.0.0.1:3000", "http://localhost:3000",
]
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.state.notifier = EmailNotifier(SessionLocal) if settings.NOTIFICATIONS_ENABLED else NullNotifier()
app.include_router(api_router)
logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)


@app.get("/health")
def health():
    return {"status": "ok"}
