from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import auth, crud, schemas
from database import get_db

router = APIRouter(prefix="/api/books", tags=["Reviews"])


# Registered ahead of the books router so "/ratings" is not taken for a book id
@router.get("/ratings", response_model=List[schemas.BookRating])
def list_books_with_ratings(db: Session = Depends(get_db)):
    return crud.list_book_ratings(db)


@router.get("/{book_id}/reviews", response_model=List[schemas.BookReviewOut])
def get_book_reviews(book_id: int, db: Session = Depends(get_db)):
    return crud.list_book_reviews(db, book_id)


# Posting again for the same book replaces the earlier review
@router.post("/{book_id}/reviews", response_model=schemas.ReviewOut, status_code=status.HTTP_201_CREATED)
def post_review(
    book_id: int,
    review: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.get_current_user),
):
    return crud.upsert_review(
        db,
        user_id=user["id"],
        book_id=book_id,
        rating=review.rating,
        review_text=review.review_text,
    )
