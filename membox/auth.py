from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from passlib.context import CryptContext
import jwt, datetime as dt, logging, secrets
from pydantic import BaseModel
from .config import Settings
from .db import get_db
from .deps import get_current_user, get_settings, require_admin
from .models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256","bcrypt_sha256","bcrypt"], default="pbkdf2_sha256", deprecated="auto")

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterIn(BaseModel):
    username: str = ""
    password: str = ""


class ResetTokenIn(BaseModel):
    username: str


class ResetPasswordIn(BaseModel):
    token: str
    new_password: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password[:72])


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password[:72], password_hash)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def create_token(user: User, settings: Settings) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    claims = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "exp": now + dt.timedelta(hours=settings.jwt_expire_hours),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm="HS256")


@router.post("/register")
def register(payload: RegisterIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    # the first account can always be created so a fresh install can be set up
    if not settings.allow_open_registration and db.query(User).first() is not None:
        raise HTTPException(status_code=403, detail="Registration is closed")
    username = payload.username.strip()
    if not username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password required")
    if db.query(User).filter(User.username == username).first():
        raise HTTPException(status_code=409, detail="Username already exists")
    user = User(username=username, password_hash=hash_password(payload.password), role="admin")
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Username already exists")
    logger.info("registered user %s", username)
    return {"message": "User registered successfully"}


@router.post("/login")
def login(
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = db.query(User).filter(User.username == form.username.strip()).first()
    if not user or not verify_password(form.password, user.password_hash):
        logger.warning("failed login for %s", form.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"access_token": create_token(user, settings), "token_type": "bearer"}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"id": user.id, "username": user.username, "role": user.role}


@router.post("/reset-token")
def issue_reset_token(
    payload: ResetTokenIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    admin: User = Depends(require_admin),
):
    user = db.query(User).filter(User.username == payload.username.strip()).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    user.reset_token = secrets.token_urlsafe(32)
    user.reset_token_expires = _utcnow() + dt.timedelta(minutes=settings.reset_token_minutes)
    db.commit()
    logger.info("%s issued a password reset token for %s", admin.username, user.username)
    return {"reset_token": user.reset_token, "expires_at": user.reset_token_expires.isoformat()}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    if not payload.new_password:
        raise HTTPException(status_code=400, detail="New password required")
    user = db.query(User).filter(User.reset_token == payload.token).first() if payload.token else None
    if not user or not user.reset_token_expires or user.reset_token_expires < _utcnow():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    user.password_hash = hash_password(payload.new_password)
    user.reset_token = None
    user.reset_token_expires = None
    db.commit()
    logger.info("password reset for %s", user.username)
    return {"message": "Password updated"}


admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/test")
def admin_test(user: User = Depends(require_admin)):
    return {"message": "Admin access confirmed", "user": {"id": user.id, "username": user.username, "role": user.role}}
