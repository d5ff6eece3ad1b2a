from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session
from annapurna.db.session import get_db
from annapurna.core.config import settings
from annapurna.models.user import User
from annapurna.core.security import verify_password, create_access_token
from annapurna.api.deps import get_current_user

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


def _user_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "fullName": user.full_name or "",
        "role": user.role,
    }


@router.post("/auth/login")
def login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token = create_access_token(user.id, user.role)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"success": True, "data": _user_dict(user), "token": token}


@router.post("/auth/logout")
def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True, "message": "Logged out"}


@router.get("/auth/me")
def me(me: User = Depends(get_current_user)):
    return {"success": True, "data": _user_dict(me)}
