"""
Book Repository for Libris

Catalog storage using SQLAlchemy:
- PostgreSQL for production
- SQLite for development/testing
- Filtering, search and pagination
- Dashboard statistics

The available-copy count is set once at creation; afterwards only the
inventory ledger changes it.
"""

import uuid
from datetime import datetime
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError

from libris.errors import BookInUseError, NotFoundError
from .database import Database
from .models import (
    BookModel,
    CategoryModel,
    FavoriteModel,
    LoanModel,
    ReviewModel,
    User,
    LOAN_ACTIVE,
)

# Fields a catalog edit may touch; quantity is deliberately absent
EDITABLE_FIELDS = ("title", "author", "isbn", "category_id", "description", "image_url")


def normalize_isbn(isbn: Optional[str]) -> Optional[str]:
    """Strip the dashes and spaces ISBNs are usually printed with."""
    if isbn is None:
        return None
    return isbn.replace("-", "").replace(" ", "")


@dataclass
class StoredBook:
    """Data class for book data transfer."""

    id: str
    title: str
    author: str
    quantity: int

    isbn: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Caller-specific
    is_favorite: Optional[bool] = None

    @classmethod
    def from_model(cls, model: BookModel, is_favorite: Optional[bool] = None) -> "StoredBook":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            title=model.title,
            author=model.author,
            quantity=model.quantity,
            isbn=model.isbn,
            category_id=model.category_id,
            category_name=model.category.name if model.category else None,
            description=model.description,
            image_url=model.image_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
            is_favorite=is_favorite,
        )

    @property
    def available(self) -> bool:
        return self.quantity > 0


class BookRepository:
    """
    Repository for catalog CRUD operations.

    Usage:
        repo = BookRepository(Database("sqlite:///libris.db"))

        book = repo.create(
            title="Dune",
            author="Frank Herbert",
            quantity=2,
        )

        books, total = repo.list_books(search="dune")
    """

    def __init__(self, db: Database):
        self.db = db

    def create(
        self,
        title: str,
        author: str,
        quantity: int = 1,
        category_id: Optional[str] = None,
        **kwargs,
    ) -> StoredBook:
        """
        Create a new book.

        Args:
            title: Book title
            author: Primary author
            quantity: Initial available copies (>= 0)
            category_id: Existing category, if any
            **kwargs: isbn, description, image_url

        Returns:
            Created StoredBook

        Raises:
            NotFoundError: category does not exist
        """
        if quantity < 0:
            raise ValueError("quantity must be >= 0")

        fields = {k: v for k, v in kwargs.items() if k in EDITABLE_FIELDS}
        if "isbn" in fields:
            fields["isbn"] = normalize_isbn(fields["isbn"])

        with self.db.transaction() as session:
            if category_id and session.get(CategoryModel, category_id) is None:
                raise NotFoundError("Category", category_id)

            book = BookModel(
                id=str(uuid.uuid4()),
                title=title,
                author=author,
                quantity=quantity,
                category_id=category_id,
                **fields,
            )
            session.add(book)
            session.flush()
            session.refresh(book)
            stored = StoredBook.from_model(book)

        logger.info(f"Book created: {stored.id} '{title}' x{quantity}")
        return stored

    def get(self, book_id: str, user_id: Optional[str] = None) -> Optional[StoredBook]:
        """
        Get book by ID.

        Args:
            book_id: Book ID
            user_id: If given, fill in is_favorite for this user

        Returns:
            StoredBook or None
        """
        with self.db.get_session() as session:
            book = session.get(BookModel, book_id)
            if not book:
                return None

            is_favorite = None
            if user_id:
                is_favorite = session.get(FavoriteModel, (user_id, book_id)) is not None
            return StoredBook.from_model(book, is_favorite)

    def get_by_isbn(self, isbn: str) -> Optional[StoredBook]:
        isbn = normalize_isbn(isbn)

        with self.db.get_session() as session:
            book = session.execute(
                select(BookModel).where(BookModel.isbn == isbn)
            ).scalars().first()
            return StoredBook.from_model(book) if book else None

    def update(self, book_id: str, **updates) -> Optional[StoredBook]:
        """
        Update catalog fields.

        Args:
            book_id: Book ID
            **updates: Fields to update (quantity is ignored)

        Returns:
            Updated StoredBook or None

        Raises:
            NotFoundError: new category does not exist
        """
        with self.db.transaction() as session:
            book = session.get(BookModel, book_id)
            if not book:
                return None

            new_category = updates.get("category_id")
            if new_category and session.get(CategoryModel, new_category) is None:
                raise NotFoundError("Category", new_category)

            for key, value in updates.items():
                if key == "isbn":
                    value = normalize_isbn(value)
                if key in EDITABLE_FIELDS:
                    setattr(book, key, value)

            book.updated_at = datetime.utcnow()
            session.flush()
            session.refresh(book)
            return StoredBook.from_model(book)

    def delete(self, book_id: str) -> bool:
        """
        Delete a book. Reviews and favorites go with it.

        Returns:
            True if deleted

        Raises:
            BookInUseError: the book has loan records
        """
        try:
            with self.db.transaction() as session:
                result = session.execute(
                    delete(BookModel)
                    .where(BookModel.id == book_id)
                    .execution_options(synchronize_session=False)
                )
                deleted = result.rowcount > 0
        except IntegrityError as e:
            logger.warning(f"Book {book_id} has loans, refusing delete")
            raise BookInUseError(book_id) from e

        if deleted:
            logger.info(f"Book deleted: {book_id}")
        return deleted

    def list_books(
        self,
        page: int = 1,
        limit: int = 20,
        filters: dict = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        user_id: Optional[str] = None,
    ) -> tuple[list[StoredBook], int]:
        """
        List books with filtering and pagination.

        Args:
            page: Page number (1-based)
            limit: Items per page
            filters: Filter dict (category_id, author, search, available)
            sort_by: Field to sort by
            sort_order: "asc" or "desc"
            user_id: If given, fill in is_favorite for this user

        Returns:
            (List of StoredBooks, total_count)
        """
        filters = filters or {}
        offset = (page - 1) * limit

        with self.db.get_session() as session:
            query = select(BookModel)

            if filters.get("category_id"):
                query = query.where(BookModel.category_id == filters["category_id"])

            if filters.get("author"):
                query = query.where(BookModel.author.ilike(f"%{filters['author']}%"))

            if filters.get("search"):
                pattern = f"%{filters['search']}%"
                query = query.where(
                    or_(
                        BookModel.title.ilike(pattern),
                        BookModel.author.ilike(pattern),
                        BookModel.isbn.ilike(pattern),
                    )
                )

            if filters.get("available"):
                query = query.where(BookModel.quantity > 0)

            total = session.execute(
                select(func.count()).select_from(query.subquery())
            ).scalar_one()

            sort_field = getattr(BookModel, sort_by, BookModel.created_at)
            if sort_order == "desc":
                query = query.order_by(sort_field.desc())
            else:
                query = query.order_by(sort_field.asc())

            books = session.execute(query.offset(offset).limit(limit)).scalars().all()

            favorites: set[str] = set()
            if user_id:
                favorites = set(
                    session.execute(
                        select(FavoriteModel.book_id).where(FavoriteModel.user_id == user_id)
                    ).scalars()
                )

            return [
                StoredBook.from_model(b, (b.id in favorites) if user_id else None)
                for b in books
            ], total

    def get_stats(self, recent_limit: int = 10, popular_limit: int = 5) -> dict:
        """
        Dashboard statistics.

        Returns:
            Totals, most popular books by average rating, latest loans
        """
        with self.db.get_session() as session:
            total_books = session.execute(select(func.count(BookModel.id))).scalar_one()
            total_users = session.execute(select(func.count(User.id))).scalar_one()
            total_reviews = session.execute(select(func.count(ReviewModel.id))).scalar_one()
            active_loans = session.execute(
                select(func.count(LoanModel.id)).where(LoanModel.status == LOAN_ACTIVE)
            ).scalar_one()

            avg_rating = func.avg(ReviewModel.rating).label("avg_rating")
            review_count = func.count(ReviewModel.id).label("review_count")
            popular = session.execute(
                select(BookModel.id, BookModel.title, BookModel.image_url, avg_rating, review_count)
                .join(ReviewModel, ReviewModel.book_id == BookModel.id)
                .group_by(BookModel.id, BookModel.title, BookModel.image_url)
                .order_by(avg_rating.desc(), review_count.desc())
                .limit(popular_limit)
            ).all()

            recent = session.execute(
                select(LoanModel.id, LoanModel.user_id, LoanModel.status, LoanModel.created_at, BookModel.title)
                .join(BookModel, LoanModel.book_id == BookModel.id)
                .order_by(LoanModel.created_at.desc())
                .limit(recent_limit)
            ).all()

            return {
                "total_books": total_books,
                "total_users": total_users,
                "active_loans": active_loans,
                "total_reviews": total_reviews,
                "popular_books": [
                    {
                        "id": row.id,
                        "title": row.title,
                        "image_url": row.image_url,
                        "average_rating": round(float(row.avg_rating), 2),
                        "review_count": row.review_count,
                    }
                    for row in popular
                ],
                "recent_loans": [
                    {
                        "id": row.id,
                        "user_id": row.user_id,
                        "book_title": row.title,
                        "status": row.status,
                        "created_at": row.created_at.isoformat() if row.created_at else None,
                    }
                    for row in recent
                ],
            }
