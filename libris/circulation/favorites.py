"""
Favorite Toggle for Libris

A pure set of (user, book) pairs: the row exists or it doesn't. Setting
is "insert, ignore conflict"; clearing is "delete if present".
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import delete, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from libris.errors import NotFoundError
from libris.storage.database import Database
from libris.storage.models import BookModel, FavoriteModel


@dataclass
class StoredFavorite:
    """Data class for favorite data transfer."""

    user_id: str
    book_id: str
    created_at: Optional[datetime] = None
    book_title: Optional[str] = None
    book_author: Optional[str] = None
    book_image_url: Optional[str] = None

    @classmethod
    def from_model(cls, model: FavoriteModel, book: Optional[BookModel] = None) -> "StoredFavorite":
        return cls(
            user_id=model.user_id,
            book_id=model.book_id,
            created_at=model.created_at,
            book_title=book.title if book else None,
            book_author=book.author if book else None,
            book_image_url=book.image_url if book else None,
        )


class FavoriteService:
    """Idempotent favorite flags."""

    def __init__(self, db: Database):
        self.db = db

    def set_favorite(self, user_id: str, book_id: str, desired: bool) -> bool:
        """
        Make the favorite flag equal to `desired`.

        Repeating the call is a no-op.

        Returns:
            The resulting flag (always `desired`)

        Raises:
            NotFoundError: unknown book (only when setting)
        """
        if desired:
            self._insert_ignore(user_id, book_id)
        else:
            with self.db.transaction() as session:
                session.execute(
                    delete(FavoriteModel)
                    .where(
                        FavoriteModel.user_id == user_id,
                        FavoriteModel.book_id == book_id,
                    )
                    .execution_options(synchronize_session=False)
                )

        logger.debug(f"Favorite user={user_id} book={book_id} -> {desired}")
        return desired

    def favorite_book_ids(self, user_id: str) -> set[str]:
        with self.db.get_session() as session:
            return set(
                session.execute(
                    select(FavoriteModel.book_id).where(FavoriteModel.user_id == user_id)
                ).scalars()
            )

    def list_favorites(self, user_id: str) -> list[StoredFavorite]:
        """A user's favorites, newest first, with book display fields."""
        with self.db.get_session() as session:
            rows = session.execute(
                select(FavoriteModel, BookModel)
                .join(BookModel, FavoriteModel.book_id == BookModel.id)
                .where(FavoriteModel.user_id == user_id)
                .order_by(FavoriteModel.created_at.desc())
            ).all()
            return [StoredFavorite.from_model(fav, book) for fav, book in rows]

    def _insert_ignore(self, user_id: str, book_id: str) -> None:
        values = {
            "user_id": user_id,
            "book_id": book_id,
            "created_at": datetime.utcnow(),
        }
        dialect = self.db.dialect

        try:
            with self.db.transaction() as session:
                if dialect == "sqlite":
                    stmt = sqlite_insert(FavoriteModel).values(**values).on_conflict_do_nothing()
                elif dialect == "postgresql":
                    stmt = pg_insert(FavoriteModel).values(**values).on_conflict_do_nothing()
                else:
                    stmt = insert(FavoriteModel).values(**values)
                session.execute(stmt)
        except IntegrityError as e:
            # ON CONFLICT only covers the pair; a foreign key miss still raises
            with self.db.get_session() as session:
                if session.get(BookModel, book_id) is None:
                    raise NotFoundError("Book", book_id) from e
            # Generic dialects: the pair already exists
            logger.debug(f"Favorite already present: user={user_id} book={book_id}")
