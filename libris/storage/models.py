"""
Database models for Libris.

The integrity rules of the circulation core live here as constraints:
- books.quantity can never go negative
- at most one active loan per (user, book)
- at most one review per (user, book)
- a category referenced by books cannot be deleted
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    Date,
    DateTime,
    Boolean,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Index,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

LOAN_ACTIVE = "active"
LOAN_RETURNED = "returned"


class User(Base):
    """User model for authentication."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class CategoryModel(Base):
    """SQLAlchemy model for categories."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    books = relationship("BookModel", back_populates="category", passive_deletes="all")


class BookModel(Base):
    """SQLAlchemy model for books."""

    __tablename__ = "books"

    id = Column(String(36), primary_key=True)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(500), nullable=False, index=True)
    isbn = Column(String(20), index=True)

    # RESTRICT is the authoritative guard against deleting a used category
    category_id = Column(
        String(36),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        index=True,
    )

    description = Column(Text)
    image_url = Column(String(500))

    # Available copies, managed by the inventory ledger only
    quantity = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("CategoryModel", back_populates="books")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_books_quantity_non_negative"),
        Index("idx_books_title_author", "title", "author"),
    )


class LoanModel(Base):
    """SQLAlchemy model for loans."""

    __tablename__ = "loans"

    id = Column(String(36), primary_key=True)
    book_id = Column(
        String(36),
        ForeignKey("books.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Opaque identity id, owned by the identity gate
    user_id = Column(String(36), nullable=False, index=True)

    expected_return_date = Column(Date, nullable=False)
    returned_at = Column(Date)
    status = Column(String(16), nullable=False, default=LOAN_ACTIVE)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    book = relationship("BookModel")

    __table_args__ = (
        CheckConstraint(
            f"status IN ('{LOAN_ACTIVE}', '{LOAN_RETURNED}')",
            name="ck_loans_status",
        ),
        Index(
            "uq_loans_active_user_book",
            "user_id",
            "book_id",
            unique=True,
            sqlite_where=text(f"status = '{LOAN_ACTIVE}'"),
            postgresql_where=text(f"status = '{LOAN_ACTIVE}'"),
        ),
    )


class ReviewModel(Base):
    """SQLAlchemy model for reviews."""

    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True)
    book_id = Column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(36), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    book = relationship("BookModel")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        UniqueConstraint("book_id", "user_id", name="uq_reviews_book_user"),
    )


class FavoriteModel(Base):
    """SQLAlchemy model for favorites. The row's existence is the flag."""

    __tablename__ = "book_favorites"

    user_id = Column(String(36), primary_key=True)
    book_id = Column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    book = relationship("BookModel")
