from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from annapurna.db.session import get_db
from annapurna.core.config import settings
from annapurna.core.security import decode_token
from annapurna.models.user import User
from annapurna.services.notification_service import Notifier, NullNotifier
from annapurna.services.stripe_gateway import StripeGateway

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    token = request.cookies.get(settings.AUTH_COOKIE_NAME) or (creds.credentials if creds else None)
    if not token:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Admin access required")
        return user
    return _guard

require_admin = require_roles("admin")

def get_notifier(request: Request) -> Notifier:
    return getattr(request.app.state, "notifier", None) or NullNotifier()

def get_payment_gateway() -> StripeGateway:
    return StripeGateway()
