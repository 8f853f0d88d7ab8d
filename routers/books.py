import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

import auth, crud, schemas
from database import get_db

router = APIRouter(prefix="/api/books", tags=["Books"])
logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 5
MAX_LIMIT = 100


def _positive_int(value: str | None, default: int, maximum: int | None = None) -> int:
    """Parse a paging parameter, falling back to the default when it is unusable."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1 or (maximum is not None and number > maximum):
        return default
    return number


# Get Books
@router.get("", response_model=schemas.BookListResponse)
def list_books(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    db: Session = Depends(get_db),
):
    page = _positive_int(page, DEFAULT_PAGE)
    limit = _positive_int(limit, DEFAULT_LIMIT, MAX_LIMIT)
    if sort_by not in crud.BOOK_SORTS:
        sort_by = crud.DEFAULT_SORT

    books, total = crud.list_books(db, page=page, limit=limit, sort_by=sort_by)
    return {
        "page": page,
        "limit": limit,
        "sortBy": sort_by,
        "total": total,
        "totalPages": math.ceil(total / limit),
        "books": books,
    }


@router.get("/search", response_model=schemas.BookSearchResponse)
def search_books(
    q: str | None = Query(default=None, max_length=200),
    db: Session = Depends(get_db),
):
    if not q or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameter 'q' is required.",
        )
    return {"books": crud.search_books(db, q.strip())}


@router.get("/top-rated", response_model=schemas.TopRatedResponse)
def top_rated_book(db: Session = Depends(get_db)):
    return {"book": crud.get_top_rated_book(db)}


@router.get("/{book_id}", response_model=schemas.BookDetailResponse)
def get_book(book_id: int, db: Session = Depends(get_db)):
    book = crud.get_book(db, book_id)
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found.")
    return {"book": book}


# Add Book
@router.post("", response_model=schemas.BookOut, status_code=status.HTTP_201_CREATED)
def add_book(
    book: schemas.BookCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.require_role("admin")),
):
    new_book = crud.create_book(
        db,
        title=book.title,
        author=book.author,
        description=book.description or book.summary or "",
        cover_url=book.cover_url,
        published_year=book.published_year,
        gutenberg_id=book.gutenberg_id,
        read_url=book.read_url,
    )
    logger.info("Admin %s added book %s", user["id"], new_book.id)
    return new_book


@router.delete("/{book_id}", response_model=schemas.MessageResponse)
def delete_book(
    book_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(auth.require_role("admin")),
):
    if not crud.delete_book(db, book_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found.")
    logger.info("Admin %s deleted book %s", user["id"], book_id)
    return {"message": "Book deleted successfully"}
