"""
Category Integrity Guard for Libris

A category referenced by any book cannot be deleted. The book count gives
the friendly error; the ON DELETE RESTRICT foreign key on books.category_id
catches a book assigned between the count and the delete.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from libris.errors import CategoryInUseError, NotFoundError
from libris.storage.database import Database
from libris.storage.models import BookModel, CategoryModel


@dataclass
class StoredCategory:
    """Data class for category data transfer."""

    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    book_count: Optional[int] = None

    @classmethod
    def from_model(cls, model: CategoryModel, book_count: Optional[int] = None) -> "StoredCategory":
        return cls(
            id=model.id,
            name=model.name,
            description=model.description,
            created_at=model.created_at,
            book_count=book_count,
        )


class CategoryService:
    """Category CRUD with a guarded delete."""

    def __init__(self, db: Database):
        self.db = db

    def create_category(self, name: str, description: Optional[str] = None) -> StoredCategory:
        with self.db.transaction() as session:
            category = CategoryModel(
                id=str(uuid.uuid4()),
                name=name,
                description=description,
            )
            session.add(category)
            session.flush()
            stored = StoredCategory.from_model(category, book_count=0)

        logger.info(f"Category created: {stored.id} ({name})")
        return stored

    def update_category(self, category_id: str, **updates) -> StoredCategory:
        """
        Update name and/or description.

        Raises:
            NotFoundError: unknown category
        """
        with self.db.transaction() as session:
            category = session.get(CategoryModel, category_id)
            if category is None:
                raise NotFoundError("Category", category_id)

            for key in ("name", "description"):
                if key in updates and updates[key] is not None:
                    setattr(category, key, updates[key])

            session.flush()
            return StoredCategory.from_model(category)

    def get_category(self, category_id: str) -> StoredCategory:
        with self.db.get_session() as session:
            category = session.get(CategoryModel, category_id)
            if category is None:
                raise NotFoundError("Category", category_id)
            return StoredCategory.from_model(category, self._count_books(session, category_id))

    def list_categories(self) -> list[StoredCategory]:
        """All categories by name, with their book counts."""
        with self.db.get_session() as session:
            counts = (
                select(BookModel.category_id, func.count(BookModel.id).label("book_count"))
                .group_by(BookModel.category_id)
                .subquery()
            )
            rows = session.execute(
                select(CategoryModel, counts.c.book_count)
                .outerjoin(counts, counts.c.category_id == CategoryModel.id)
                .order_by(CategoryModel.name.asc())
            ).all()

            return [StoredCategory.from_model(c, count or 0) for c, count in rows]

    def delete_category(self, category_id: str) -> None:
        """
        Delete an unused category.

        Raises:
            CategoryInUseError: at least one book references it
            NotFoundError: unknown category
        """
        try:
            with self.db.transaction() as session:
                book_count = self._count_books(session, category_id)
                if book_count > 0:
                    logger.warning(f"Category {category_id} still has {book_count} book(s)")
                    raise CategoryInUseError(category_id, book_count)

                result = session.execute(
                    delete(CategoryModel)
                    .where(CategoryModel.id == category_id)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise NotFoundError("Category", category_id)
        except IntegrityError as e:
            logger.warning(f"Category {category_id} gained a book during delete")
            raise CategoryInUseError(category_id) from e

        logger.info(f"Category deleted: {category_id}")

    @staticmethod
    def _count_books(session, category_id: str) -> int:
        return session.execute(
            select(func.count(BookModel.id)).where(BookModel.category_id == category_id)
        ).scalar_one()
