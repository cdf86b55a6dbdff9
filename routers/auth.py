import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from database import get_db
from models import User
from schemas import LoginRequest, LoginResponse, MeResponse, SessionUser, SuccessResponse
from dependencies import (
    SESSION_COOKIE_NAME,
    clear_session_cookie,
    get_current_user,
    get_session_store,
    read_session_id,
    set_session_cookie,
    verify_password,
)
from session_store import SessionStore, SessionStoreError

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    if not credentials.email or not credentials.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email y contraseña obligatorios"
        )

    # Unknown email, inactive account and wrong password share one answer
    invalid_credentials = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Credenciales inválidas"
    )

    try:
        user = db.query(User).filter(User.email == credentials.email).one_or_none()
        if not user or not user.active:
            raise invalid_credentials

        valid, new_hash = verify_password(credentials.password, user.password)
        if not valid:
            raise invalid_credentials

        session_user = SessionUser.model_validate(user)
        if new_hash:
            user.password = new_hash
            db.commit()
            logger.info(f"Upgraded legacy password hash for user {user.id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during login: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno"
        )

    try:
        session_id = store.create(session_user.model_dump())
    except SessionStoreError as e:
        logger.error(f"Session store error during login: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno"
        )
    set_session_cookie(response, session_id)
    logger.info(f"User {session_user.id} logged in as {session_user.role}")

    return {"success": True, "user": session_user}

@router.post("/logout", response_model=SuccessResponse)
def logout(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store)
):
    session_id = read_session_id(request.cookies.get(SESSION_COOKIE_NAME))
    if session_id:
        store.delete(session_id)
    clear_session_cookie(response)
    return {"success": True}

@router.get("/me", response_model=MeResponse)
async def read_users_me(current_user: SessionUser = Depends(get_current_user)):
    """
    Get the user held by the current session
    """
    return {"user": current_user}
