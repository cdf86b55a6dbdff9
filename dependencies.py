from datetime import datetime, timedelta, timezone
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from database import settings, DEFAULT_SESSION_SECRET
from schemas import SessionUser
from session_store import SessionStore, build_session_store

logger = logging.getLogger(__name__)

# Security setup
SECRET_KEY = settings.SESSION_SECRET
ALGORITHM = "HS256"
SESSION_COOKIE_NAME = settings.SESSION_COOKIE_NAME
SESSION_MAX_AGE_SECONDS = settings.SESSION_MAX_AGE_SECONDS

if SECRET_KEY == DEFAULT_SESSION_SECRET:
    logger.warning("SESSION_SECRET is not set, using the built-in development secret")

# Plaintext is accepted only to upgrade legacy rows on their next login
pwd_context = CryptContext(
    schemes=["bcrypt", "plaintext"],
    deprecated=["plaintext"],
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

session_store = build_session_store(settings)

def verify_password(plain_password: str, stored_password: str):
    """Return (valid, new_hash); new_hash is set when the stored value must be upgraded."""
    return pwd_context.verify_and_update(plain_password, stored_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_session_cookie(session_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=SESSION_MAX_AGE_SECONDS)
    return jwt.encode({"sid": session_id, "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)

def read_session_id(cookie: Optional[str]) -> Optional[str]:
    if not cookie:
        return None
    try:
        payload = jwt.decode(cookie, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected session cookie: {e}")
        return None
    return payload.get("sid")

def set_session_cookie(response: Response, session_id: str):
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=create_session_cookie(session_id),
        max_age=SESSION_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )

def clear_session_cookie(response: Response):
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )

def get_session_store() -> SessionStore:
    return session_store

def get_current_user(
    request: Request,
    store: SessionStore = Depends(get_session_store)
) -> SessionUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No autenticado",
    )

    session_id = read_session_id(request.cookies.get(SESSION_COOKIE_NAME))
    if session_id is None:
        raise credentials_exception
    user = store.get(session_id)
    if user is None:
        raise credentials_exception
    return SessionUser(**user)

def get_current_admin_user(current_user: SessionUser = Depends(get_current_user)):
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado (admin requerido)"
        )
    return current_user
