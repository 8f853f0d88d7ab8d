import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import auth, crud, models, schemas
from database import get_db

router = APIRouter(
    prefix="/api/reading-lists",
    tags=["Reading Lists"],
)
logger = logging.getLogger(__name__)


def _get_owned_list(db: Session, list_id: int, user_id: int) -> models.ReadingList:
    reading_list = crud.get_reading_list(db, list_id)
    if not reading_list or reading_list.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")
    return reading_list


@router.get("", response_model=schemas.ReadingListsResponse)
def list_reading_lists(db: Session = Depends(get_db), user: dict = Depends(auth.get_current_user)):
    return {"lists": crud.list_user_reading_lists(db, user["id"])}


@router.post("", response_model=schemas.ReadingListOut, status_code=status.HTTP_201_CREATED)
def create_reading_list(
    payload: schemas.ReadingListCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.get_current_user),
):
    reading_list = models.ReadingList(
        user_id=user["id"],
        name=payload.name,
        description=payload.description,
        is_public=payload.is_public,
    )
    db.add(reading_list)
    db.commit()
    db.refresh(reading_list)
    return reading_list


@router.get("/{list_id}", response_model=schemas.ReadingListDetailResponse)
def get_reading_list(
    list_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.get_current_user),
):
    reading_list = crud.get_reading_list(db, list_id)
    # Private lists are invisible to everyone but their owner
    if not reading_list or (not reading_list.is_public and reading_list.user_id != user["id"]):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="List not found")

    detail = schemas.ReadingListDetail(
        **schemas.ReadingListOut.model_validate(reading_list).model_dump(),
        creator_name=reading_list.owner.name,
    )
    return {"reading_list": detail, "books": crud.list_books_in_list(db, list_id)}


@router.put("/{list_id}", response_model=schemas.ReadingListOut)
def update_reading_list(
    list_id: int,
    payload: schemas.ReadingListUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.get_current_user),
):
    reading_list = _get_owned_list(db, list_id, user["id"])

    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("name", "is_public") and value is None:
            continue
        setattr(reading_list, field, value)

    db.commit()
    db.refresh(reading_list)
    return reading_list


@router.delete("/{list_id}", response_model=schemas.MessageResponse)
def delete_reading_list(
    list_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.get_current_user),
):
    reading_list = _get_owned_list(db, list_id, user["id"])
    db.delete(reading_list)
    db.commit()
    return {"message": "List deleted"}


@router.post(
    "/{list_id}/books/{book_id}",
    response_model=schemas.MembershipResponse,
    response_model_exclude_none=True,
)
def add_book_to_list(
    list_id: int,
    book_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.get_current_user),
):
    _get_owned_list(db, list_id, user["id"])
    added = crud.add_book_to_list(db, list_id, book_id)
    message = "Book added to list" if added else "Book already in list"
    return {"message": message, "added": added}


@router.delete(
    "/{list_id}/books/{book_id}",
    response_model=schemas.MembershipResponse,
    response_model_exclude_none=True,
)
def remove_book_from_list(
    list_id: int,
    book_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.get_current_user),
):
    _get_owned_list(db, list_id, user["id"])
    removed = crud.remove_book_from_list(db, list_id, book_id)
    message = "Book removed from list" if removed else "Book not in list"
    return {"message": message, "removed": removed}
