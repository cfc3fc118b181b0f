"""Shared fixtures and factory helpers for the CRUD tests.

Uses an in-memory SQLite database — no running Postgres required.
Each test gets a completely fresh database (function-scoped engine).
"""

import pytest
from sqlalchemy import BigInteger, create_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session


# SQLite only auto-increments columns declared as `INTEGER PRIMARY KEY`.
# The models use `BigInteger` which renders as `BIGINT`, disabling auto-ID.
# Override the type for the sqlite dialect so all BigInteger columns
# become `INTEGER`, restoring auto-increment behaviour in tests.
@compiles(BigInteger, "sqlite")
def _sqlite_bigint(type_, compiler, **kwargs):  # noqa: ARG001
    return "INTEGER"

from bookcatalog.db.base import Base
from bookcatalog.db.crud import AuthorCRUD, BookCRUD, UserBookCRUD, UserCRUD


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session():
    """Provide a fresh, isolated in-memory SQLite session for each test."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    with Session(engine, autoflush=False) as sess:
        yield sess
    engine.dispose()


# ---------------------------------------------------------------------------
# Factory helpers (plain functions, not fixtures, so tests can call them
# with custom arguments easily)
# ---------------------------------------------------------------------------


def make_user(
    session,
    email="alice@example.com",
    name="Alice",
    password_hash="hashed_pw",
):
    return UserCRUD.create(session, email=email, name=name, password_hash=password_hash)


def make_author(session, name="George Orwell"):
    return AuthorCRUD.create(session, name=name)


def make_book(session, title="1984", publication_year=1949, **kwargs):
    return BookCRUD.create(
        session, {"title": title, "publication_year": publication_year, **kwargs}
    )


def rate_book(session, book, ratings):
    """Rate ``book`` once per value in ``ratings``, each from a new user."""
    for index, rating in enumerate(ratings):
        user = make_user(
            session,
            email=f"reader{book.id}_{index}@example.com",
            name=f"Reader {index}",
        )
        UserBookCRUD.rate(session, user.id, book.id, rating)
