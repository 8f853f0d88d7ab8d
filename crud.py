"""Database queries shared by the routers.

Book rating statistics are never stored. Every read that exposes
``avg_rating`` and ``review_count`` derives them from a LEFT JOIN over
``reviews`` grouped by book id, so a book without reviews reports 0 and 0.
"""

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

import models

BOOK_SORTS = {
    "newest": models.Book.id.desc(),
    "title": models.Book.title.asc(),
    "year_new": models.Book.published_year.desc().nulls_last(),
    "year_old": models.Book.published_year.asc().nulls_last(),
}
DEFAULT_SORT = "newest"

avg_rating_expr = func.coalesce(func.round(func.avg(models.Review.rating), 1), 0).label("avg_rating")
review_count_expr = func.count(models.Review.id).label("review_count")


def _insert(db: Session, table):
    """Dialect insert so ON CONFLICT clauses are available."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert(table)
    return postgresql.insert(table)


def _books_with_stats(db: Session):
    return (
        db.query(models.Book, avg_rating_expr, review_count_expr)
        .outerjoin(models.Review, models.Review.book_id == models.Book.id)
        .group_by(models.Book.id)
    )


def book_to_dict(book: models.Book, avg_rating=0, review_count=0) -> dict:
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "description": book.description,
        "cover_url": book.cover_url,
        "published_year": book.published_year,
        "gutenberg_id": book.gutenberg_id,
        "read_url": book.read_url,
        "avg_rating": round(float(avg_rating or 0), 1),
        "review_count": int(review_count or 0),
    }


# Books
def list_books(db: Session, page: int = 1, limit: int = 5, sort_by: str = DEFAULT_SORT) -> tuple[list[dict], int]:
    order_by = BOOK_SORTS.get(sort_by, BOOK_SORTS[DEFAULT_SORT])
    rows = (
        _books_with_stats(db)
        .order_by(order_by, models.Book.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )
    total = db.query(func.count(models.Book.id)).scalar() or 0
    return [book_to_dict(*row) for row in rows], total


def search_books(db: Session, q: str) -> list[dict]:
    pattern = f"%{q}%"
    rows = (
        _books_with_stats(db)
        .filter(models.Book.title.ilike(pattern) | models.Book.author.ilike(pattern))
        .order_by(models.Book.id)
        .all()
    )
    return [book_to_dict(*row) for row in rows]


def get_top_rated_book(db: Session) -> dict | None:
    row = (
        _books_with_stats(db)
        .having(func.count(models.Review.id) > 0)
        .order_by(func.avg(models.Review.rating).desc(), review_count_expr.desc(), models.Book.id)
        .first()
    )
    return book_to_dict(*row) if row else None


def get_book(db: Session, book_id: int) -> dict | None:
    row = _books_with_stats(db).filter(models.Book.id == book_id).first()
    return book_to_dict(*row) if row else None


def list_book_ratings(db: Session) -> list[dict]:
    rows = (
        db.query(models.Book.id, models.Book.title, models.Book.author, avg_rating_expr, review_count_expr)
        .outerjoin(models.Review, models.Review.book_id == models.Book.id)
        .group_by(models.Book.id)
        .order_by(avg_rating_expr.desc(), models.Book.id)
        .all()
    )
    return [
        {
            "id": row.id,
            "title": row.title,
            "author": row.author,
            "avg_rating": round(float(row.avg_rating or 0), 1),
            "review_count": int(row.review_count or 0),
        }
        for row in rows
    ]


def create_book(db: Session, **fields) -> models.Book:
    book = models.Book(**fields)
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


def delete_book(db: Session, book_id: int) -> bool:
    book = db.query(models.Book).filter(models.Book.id == book_id).first()
    if not book:
        return False
    db.delete(book)
    db.commit()
    return True


# Reviews
def upsert_review(db: Session, user_id: int, book_id: int, rating: int, review_text: str | None) -> models.Review:
    stmt = _insert(db, models.Review).values(
        user_id=user_id,
        book_id=book_id,
        rating=rating,
        review_text=review_text,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "book_id"],
        set_={
            "rating": stmt.excluded.rating,
            "review_text": stmt.excluded.review_text,
            "created_at": func.now(),
        },
    ).returning(models.Review)
    review = db.scalars(stmt, execution_options={"populate_existing": True}).one()
    db.commit()
    db.refresh(review)
    return review


def _review_rows(db: Session):
    return (
        db.query(
            models.Review.id,
            models.Review.user_id,
            models.Review.book_id,
            models.Review.rating,
            models.Review.review_text,
            models.Review.created_at,
            models.User.name.label("user_name"),
            models.Book.title.label("book_title"),
        )
        .join(models.User, models.User.id == models.Review.user_id)
        .join(models.Book, models.Book.id == models.Review.book_id)
    )


def list_book_reviews(db: Session, book_id: int) -> list[dict]:
    rows = (
        _review_rows(db)
        .filter(models.Review.book_id == book_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )
    return [dict(row._mapping) for row in rows]


def list_all_reviews(db: Session) -> list[dict]:
    rows = _review_rows(db).order_by(models.Review.created_at.desc(), models.Review.id.desc()).all()
    return [dict(row._mapping) for row in rows]


def delete_review(db: Session, review_id: int) -> bool:
    review = db.query(models.Review).filter(models.Review.id == review_id).first()
    if not review:
        return False
    db.delete(review)
    db.commit()
    return True


# Users
def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_profile(db: Session, user_id: int) -> dict | None:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        return None

    rows = (
        db.query(
            models.Review.id.label("review_id"),
            models.Review.book_id,
            models.Book.title.label("book_title"),
            models.Review.rating,
            models.Review.review_text,
            models.Review.created_at,
        )
        .join(models.Book, models.Book.id == models.Review.book_id)
        .filter(models.Review.user_id == user_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "reviews": [dict(row._mapping) for row in rows],
    }


# Reading lists
def list_user_reading_lists(db: Session, user_id: int) -> list[models.ReadingList]:
    return (
        db.query(models.ReadingList)
        .filter(models.ReadingList.user_id == user_id)
        .order_by(models.ReadingList.created_at.desc(), models.ReadingList.id.desc())
        .all()
    )


def get_reading_list(db: Session, list_id: int) -> models.ReadingList | None:
    return db.query(models.ReadingList).filter(models.ReadingList.id == list_id).first()


def list_books_in_list(db: Session, list_id: int) -> list[models.Book]:
    return (
        db.query(models.Book)
        .join(models.ReadingListBook, models.ReadingListBook.book_id == models.Book.id)
        .filter(models.ReadingListBook.reading_list_id == list_id)
        .order_by(models.ReadingListBook.added_at.desc(), models.ReadingListBook.id.desc())
        .all()
    )


def add_book_to_list(db: Session, list_id: int, book_id: int) -> bool:
    """Insert a membership row; returns False if the book was already listed."""
    stmt = (
        _insert(db, models.ReadingListBook)
        .values(reading_list_id=list_id, book_id=book_id)
        .on_conflict_do_nothing(index_elements=["reading_list_id", "book_id"])
        .returning(models.ReadingListBook.id)
    )
    inserted = db.execute(stmt).scalar_one_or_none()
    db.commit()
    return inserted is not None


def remove_book_from_list(db: Session, list_id: int, book_id: int) -> bool:
    removed = (
        db.query(models.ReadingListBook)
        .filter(
            models.ReadingListBook.reading_list_id == list_id,
            models.ReadingListBook.book_id == book_id,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed > 0
