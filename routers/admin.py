import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import auth, crud, schemas
from database import get_db
from routers import books

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(auth.require_role("admin"))],
)
logger = logging.getLogger(__name__)


# Review moderation
@router.get("/reviews", response_model=schemas.AdminReviewListResponse)
def list_reviews(db: Session = Depends(get_db)):
    return {"data": crud.list_all_reviews(db)}


@router.delete("/reviews/{review_id}", response_model=schemas.MessageResponse)
def delete_review(review_id: int, db: Session = Depends(get_db)):
    if not crud.delete_review(db, review_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    logger.info("Deleted review %s", review_id)
    return {"message": "Review deleted successfully"}


# Books management, same handlers as /api/books
router.add_api_route(
    "/books",
    books.add_book,
    methods=["POST"],
    response_model=schemas.BookOut,
    status_code=status.HTTP_201_CREATED,
)
router.add_api_route(
    "/books/{book_id}",
    books.delete_book,
    methods=["DELETE"],
    response_model=schemas.MessageResponse,
)
