from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    true,
)
from sqlalchemy.orm import relationship

from database import Base

USER_ROLES = ("user", "admin")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(60), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(Enum(*USER_ROLES, name="user_role"), nullable=False, default="user", server_default="user")

    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")
    reading_lists = relationship("ReadingList", back_populates="owner", cascade="all, delete-orphan")


class Book(Base):
    __tablename__ = "books"
    __table_args__ = (
        UniqueConstraint("title", "author", name="unique_title_author"),
        Index("idx_books_title", "title"),
        Index("idx_books_author", "author"),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    author = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="", server_default="")
    cover_url = Column(Text, nullable=True)
    published_year = Column(Integer, nullable=True)
    gutenberg_id = Column(String(20), nullable=True)
    read_url = Column(Text, nullable=True)

    reviews = relationship("Review", back_populates="book", cascade="all, delete-orphan")
    list_entries = relationship("ReadingListBook", back_populates="book", cascade="all, delete-orphan")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="reviews_user_id_book_id_key"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="reviews_rating_check"),
        Index("idx_reviews_book_id", "book_id"),
        Index("idx_reviews_user_id", "user_id"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="reviews")
    book = relationship("Book", back_populates="reviews")


class ReadingList(Base):
    __tablename__ = "reading_lists"
    __table_args__ = (Index("idx_reading_list_user_id", "user_id"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime, server_default=func.now())

    owner = relationship("User", back_populates="reading_lists")
    entries = relationship("ReadingListBook", back_populates="reading_list", cascade="all, delete-orphan")


class ReadingListBook(Base):
    __tablename__ = "reading_list_books"
    __table_args__ = (
        UniqueConstraint("reading_list_id", "book_id", name="reading_list_books_reading_list_id_book_id_key"),
    )

    id = Column(Integer, primary_key=True)
    reading_list_id = Column(Integer, ForeignKey("reading_lists.id", ondelete="CASCADE"), nullable=False)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    added_at = Column(DateTime, server_default=func.now())

    reading_list = relationship("ReadingList", back_populates="entries")
    book = relationship("Book", back_populates="list_entries")
