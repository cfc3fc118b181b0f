"""CRUD helpers for the book catalog schema.

One class per table group. All methods take a SQLAlchemy ``Session`` and
flush on writes so generated ids and defaults are available immediately;
none of them commit. Books and authors are returned as ``BookEntity`` /
``AuthorEntity`` snapshots, users and ratings as ORM rows.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, delete, insert, select, update
from sqlalchemy.orm import Session

from bookcatalog.schemas import AuthorEntity, BookCreate, BookEntity, BookPatch
from bookcatalog.schemas.book import PERSISTED_FIELDS
from bookcatalog.validation import (
    require_non_empty,
    validate_email,
    validate_rating,
)

from .errors import BookNotFoundError
from .models import Author, Book, BookAuthor, User, UserBook
from .rating import weighted_rating

logger = logging.getLogger(__name__)

_BOOK_CRITERIA = frozenset({"id", *PERSISTED_FIELDS})

PASSWORD_RESET_TOKEN_MAX_LENGTH = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _book_criteria(criteria: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(criteria) - _BOOK_CRITERIA
    if unknown:
        raise ValueError(f"Unsupported book criteria: {', '.join(sorted(unknown))}")
    return dict(criteria)


def _as_book_create(data: BookCreate | Mapping[str, Any]) -> BookCreate:
    if isinstance(data, BookCreate):
        return data
    return BookCreate.model_validate(data)


def _check_unique(
    session: Session, model, field, value, label: str, exclude_id: int | None = None,
) -> None:
    """Pre-check a UNIQUE column, raising ValueError on conflict."""
    stmt = select(model).where(field == value)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    if session.scalar(stmt) is not None:
        raise ValueError(f"{label} {value!r} is already taken")


class AuthorCRUD:
    @staticmethod
    def get_by_id(session: Session, author_id: int) -> AuthorEntity | None:
        author = session.get(Author, author_id)
        return AuthorEntity.model_validate(author) if author else None

    @staticmethod
    def get_by_name(session: Session, name: str) -> AuthorEntity | None:
        author = session.scalar(select(Author).where(Author.name == name).limit(1))
        return AuthorEntity.model_validate(author) if author else None

    @staticmethod
    def create(session: Session, name: str) -> AuthorEntity:
        author = Author(name=require_non_empty(name, "name"))
        session.add(author)
        session.flush()
        session.refresh(author)
        return AuthorEntity.model_validate(author)

    @staticmethod
    def get_or_create(session: Session, name: str) -> AuthorEntity:
        existing = AuthorCRUD.get_by_name(session, name)
        if existing:
            return existing
        return AuthorCRUD.create(session, name=name)


class BookCRUD:
    # -- reads -------------------------------------------------------------

    @staticmethod
    def fetch_one(session: Session, **criteria: Any) -> BookEntity | None:
        stmt = select(Book).filter_by(**_book_criteria(criteria)).limit(1)
        book = session.scalar(stmt)
        return BookEntity.from_row(book) if book else None

    @staticmethod
    def fetch_all(session: Session, **criteria: Any) -> list[BookEntity]:
        stmt = select(Book).filter_by(**_book_criteria(criteria)).order_by(Book.id)
        return [BookEntity.from_row(book) for book in session.scalars(stmt).all()]

    @staticmethod
    def fetch_raw(
        session: Session, build: Callable[[Select], Select]
    ) -> list[BookEntity]:
        """Run a caller-refined ``select(Book)`` and wrap every row."""
        books = session.scalars(build(select(Book))).all()
        return [BookEntity.from_row(book) for book in books]

    @staticmethod
    def fetch_raw_one(
        session: Session, build: Callable[[Select], Select]
    ) -> BookEntity | None:
        book = session.scalars(build(select(Book))).first()
        return BookEntity.from_row(book) if book else None

    # -- writes ------------------------------------------------------------

    @staticmethod
    def create(session: Session, data: BookCreate | Mapping[str, Any]) -> BookEntity:
        payload = _as_book_create(data)
        book = Book(**payload.model_dump())
        session.add(book)
        session.flush()
        session.refresh(book)
        logger.debug("Created book id=%s title=%r", book.id, book.title)
        return BookEntity.from_row(book)

    @staticmethod
    def create_many(
        session: Session, items: Iterable[BookCreate | Mapping[str, Any]]
    ) -> list[BookEntity]:
        payloads = [_as_book_create(item) for item in items]
        if not payloads:
            return []
        books = [Book(**payload.model_dump()) for payload in payloads]
        session.add_all(books)
        session.flush()
        for book in books:
            session.refresh(book)
        logger.debug("Created %d books", len(books))
        return [BookEntity.from_row(book) for book in books]

    @staticmethod
    def save(
        session: Session,
        book: BookEntity,
        patch: BookPatch | Mapping[str, Any] | None = None,
    ) -> BookEntity:
        """Persist ``book``; with a ``patch`` only its explicitly set fields.

        ``updated_at`` is always refreshed. The entity is updated in place
        and returned.
        """
        if patch is None:
            patch = BookPatch.model_validate(book.persisted_values())
        elif not isinstance(patch, BookPatch):
            patch = BookPatch.model_validate(patch)

        values = patch.changes()
        values["updated_at"] = _utcnow()

        result = session.execute(
            update(Book).where(Book.id == book.id).values(**values)
        )
        if result.rowcount == 0:
            raise BookNotFoundError(book.id)
        logger.debug("Saved book id=%s fields=%s", book.id, sorted(values))

        for key, value in values.items():
            setattr(book, key, value)
        return book

    @staticmethod
    def remove(session: Session, book: BookEntity) -> None:
        result = session.execute(delete(Book).where(Book.id == book.id))
        if result.rowcount == 0:
            raise BookNotFoundError(book.id)
        logger.debug("Removed book id=%s", book.id)

    # -- authors -----------------------------------------------------------

    @staticmethod
    def add_authors(
        session: Session,
        book: BookEntity,
        authors: AuthorEntity | Iterable[AuthorEntity],
    ) -> list[AuthorEntity]:
        """Link ``authors`` to ``book`` with one batched insert.

        Pairs that are already linked, or repeated within the call, are
        skipped. Newly linked authors are appended to ``book.authors`` in
        call order.
        """
        if isinstance(authors, AuthorEntity):
            authors = [authors]

        linked = set(
            session.scalars(
                select(BookAuthor.author_id).where(BookAuthor.book_id == book.id)
            ).all()
        )
        added: list[AuthorEntity] = []
        for author in authors:
            if author.id in linked:
                continue
            linked.add(author.id)
            added.append(author)

        if added:
            session.execute(
                insert(BookAuthor),
                [{"book_id": book.id, "author_id": author.id} for author in added],
            )
            logger.debug(
                "Linked authors %s to book id=%s", [a.id for a in added], book.id
            )

        book.authors = [*book.authors, *added]
        return book.authors

    @staticmethod
    def populate_authors(session: Session, book: BookEntity) -> list[AuthorEntity]:
        stmt = (
            select(Author)
            .join(BookAuthor, BookAuthor.author_id == Author.id)
            .where(BookAuthor.book_id == book.id)
        )
        book.authors = [
            AuthorEntity.model_validate(author) for author in session.scalars(stmt).all()
        ]
        return book.authors

    # -- ratings -----------------------------------------------------------

    @staticmethod
    def get_avg_rating(session: Session, book: BookEntity) -> int | None:
        """Compute and store the weighted average rating of ``book``.

        Returns None, leaving ``book.avg_rating`` untouched, when the book
        has not been rated.
        """
        stmt = (
            select(weighted_rating(UserBook.rating).label("avg_rating"))
            .where(UserBook.book_id == book.id)
            .group_by(UserBook.book_id)
        )
        value = session.execute(stmt).scalar_one_or_none()
        if value is None:
            return None
        book.avg_rating = value
        return book.avg_rating

    @staticmethod
    def get_all_by_avg_rating(
        session: Session, limit: int | None = None
    ) -> list[BookEntity]:
        """Rated books ordered by weighted average rating, best first.

        Only books with at least one rating row are returned.
        """
        avg_rating = weighted_rating(UserBook.rating).label("avg_rating")
        stmt = (
            select(Book, avg_rating)
            .join(UserBook, UserBook.book_id == Book.id)
            .group_by(*Book.__table__.columns)
            .order_by(avg_rating.desc(), Book.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [
            BookEntity.from_row(book, avg_rating=value)
            for book, value in session.execute(stmt).all()
        ]


class UserBookCRUD:
    @staticmethod
    def get(session: Session, user_id: int, book_id: int) -> UserBook | None:
        return session.get(UserBook, (user_id, book_id))

    @staticmethod
    def get_by_book(session: Session, book_id: int, limit: int = 100) -> list[UserBook]:
        stmt = select(UserBook).where(UserBook.book_id == book_id).limit(limit)
        return session.scalars(stmt).all()

    @staticmethod
    def rate(session: Session, user_id: int, book_id: int, rating: int) -> UserBook:
        rating = validate_rating(rating)
        existing = session.get(UserBook, (user_id, book_id))
        if existing:
            existing.rating = rating
            existing.updated_at = _utcnow()
            session.flush()
            return existing
        user_book = UserBook(user_id=user_id, book_id=book_id, rating=rating)
        session.add(user_book)
        session.flush()
        return user_book

    @staticmethod
    def delete(session: Session, user_id: int, book_id: int) -> bool:
        existing = session.get(UserBook, (user_id, book_id))
        if not existing:
            return False
        session.delete(existing)
        session.flush()
        return True


class UserCRUD:
    @staticmethod
    def get_by_id(session: Session, user_id: int) -> User | None:
        return session.get(User, user_id)

    @staticmethod
    def get_by_email(session: Session, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return session.scalar(stmt)

    @staticmethod
    def create(
        session: Session,
        email: str,
        name: str,
        password_hash: str,
    ) -> User:
        email = validate_email(email)
        name = require_non_empty(name, "name")
        password_hash = require_non_empty(password_hash, "password_hash")
        _check_unique(session, User, User.email, email, "email")
        user = User(email=email, name=name, password_hash=password_hash)
        session.add(user)
        session.flush()
        return user

    @staticmethod
    def _get_or_raise(session: Session, user_id: int) -> User:
        user = session.get(User, user_id)
        if not user:
            raise ValueError(f"User with id {user_id} not found")
        return user

    @staticmethod
    def set_password_reset(
        session: Session, user_id: int, token: str, expires: datetime
    ) -> User:
        token = require_non_empty(token, "password_reset_token")
        if len(token) > PASSWORD_RESET_TOKEN_MAX_LENGTH:
            raise ValueError(
                f"password_reset_token must be at most "
                f"{PASSWORD_RESET_TOKEN_MAX_LENGTH} characters"
            )
        user = UserCRUD._get_or_raise(session, user_id)
        user.password_reset_token = token
        user.password_reset_expires = expires
        user.updated_at = _utcnow()
        session.flush()
        return user

    @staticmethod
    def get_by_password_reset_token(
        session: Session, token: str, now: datetime | None = None
    ) -> User | None:
        """Find the user holding ``token``; expired tokens match nothing."""
        now = now or _utcnow()
        stmt = select(User).where(
            User.password_reset_token == token,
            User.password_reset_expires > now,
        )
        return session.scalar(stmt)

    @staticmethod
    def clear_password_reset(session: Session, user_id: int) -> User:
        user = UserCRUD._get_or_raise(session, user_id)
        user.password_reset_token = None
        user.password_reset_expires = None
        user.updated_at = _utcnow()
        session.flush()
        return user

    @staticmethod
    def mark_email_verified(session: Session, user_id: int) -> User:
        user = UserCRUD._get_or_raise(session, user_id)
        user.email_verified = True
        user.updated_at = _utcnow()
        session.flush()
        return user
