from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import auth, crud, schemas
from database import get_db

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/me", response_model=schemas.UserProfile)
def get_profile(db: Session = Depends(get_db), user: dict = Depends(auth.get_current_user)):
    profile = crud.get_user_profile(db, user["id"])
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile
