from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator


# Users
class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=60)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    # Passwords are hashed exactly as typed
    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserPublic(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str

    model_config = ConfigDict(from_attributes=True)


class LoginUser(BaseModel):
    id: int
    role: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    token: str
    user: LoginUser


class ProfileReview(BaseModel):
    review_id: int
    book_id: int
    book_title: str
    rating: int
    review_text: str | None
    created_at: datetime | None


class UserProfile(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    reviews: List[ProfileReview]


# Books
class BookCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    author: str = Field(min_length=1, max_length=100)
    description: str | None = None
    summary: str | None = None
    cover_url: str | None = None
    published_year: int | None = Field(default=None, ge=0, le=9999)
    gutenberg_id: str | None = Field(default=None, max_length=20)
    read_url: str | None = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("gutenberg_id", mode="before")
    @classmethod
    def coerce_gutenberg_id(cls, value):
        if isinstance(value, int):
            return str(value)
        return value


class BookOut(BaseModel):
    id: int
    title: str
    author: str
    description: str | None
    cover_url: str | None
    published_year: int | None
    gutenberg_id: str | None
    read_url: str | None

    model_config = ConfigDict(from_attributes=True)


class BookWithStats(BookOut):
    avg_rating: float
    review_count: int


class BookListResponse(BaseModel):
    success: bool = True
    page: int
    limit: int
    sortBy: str
    total: int
    totalPages: int
    books: List[BookWithStats]


class BookSearchResponse(BaseModel):
    success: bool = True
    books: List[BookWithStats]


class BookDetailResponse(BaseModel):
    success: bool = True
    book: BookWithStats


class TopRatedResponse(BaseModel):
    success: bool = True
    book: BookWithStats | None


class BookRating(BaseModel):
    id: int
    title: str
    author: str
    avg_rating: float
    review_count: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# Reviews
class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    review_text: str | None = Field(
        default=None,
        max_length=5000,
        validation_alias=AliasChoices("reviewText", "review_text"),
    )


class ReviewOut(BaseModel):
    id: int
    user_id: int
    book_id: int
    rating: int
    review_text: str | None
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class BookReviewOut(BaseModel):
    id: int
    user_id: int
    book_id: int
    rating: int
    review_text: str | None
    created_at: datetime | None
    user_name: str


class AdminReviewOut(BaseModel):
    id: int
    rating: int
    review_text: str | None
    created_at: datetime | None
    user_id: int
    user_name: str
    book_id: int
    book_title: str


class AdminReviewListResponse(BaseModel):
    success: bool = True
    data: List[AdminReviewOut]


# Reading lists
class ReadingListCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    is_public: bool = Field(
        default=True,
        validation_alias=AliasChoices("isPublic", "is_public"),
    )

    model_config = ConfigDict(str_strip_whitespace=True)


class ReadingListUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    is_public: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("isPublic", "is_public"),
    )

    model_config = ConfigDict(str_strip_whitespace=True)


class ReadingListOut(BaseModel):
    id: int
    user_id: int
    name: str
    description: str | None
    is_public: bool
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ReadingListDetail(ReadingListOut):
    creator_name: str


class ReadingListsResponse(BaseModel):
    success: bool = True
    lists: List[ReadingListOut]


class ReadingListDetailResponse(BaseModel):
    success: bool = True
    reading_list: ReadingListDetail = Field(serialization_alias="list")
    books: List[BookOut]


class MembershipResponse(BaseModel):
    success: bool = True
    message: str
    added: Optional[bool] = None
    removed: Optional[bool] = None
