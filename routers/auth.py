import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

import auth, crud, models, schemas
from config import settings
from database import get_db
from rate_limiter import limiter

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid Credentials"


@router.post("/signup", response_model=schemas.UserPublic)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def signup(request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, user.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    new_user = models.User(
        name=user.name,
        email=user.email,
        password_hash=auth.hash_password(user.password),
        role="user",
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info("Registered user %s", new_user.id)
    return new_user


@router.post("/login", response_model=schemas.LoginResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, user: schemas.UserLogin, db: Session = Depends(get_db)):
    db_user = crud.get_user_by_email(db, user.email)

    # Same answer for unknown email and wrong password
    if not db_user or not auth.verify_password(user.password, db_user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CREDENTIALS)

    role = db_user.role or "user"
    token = auth.create_access_token(db_user.id, role)

    return {"token": token, "user": {"id": db_user.id, "role": role, "name": db_user.name}}
