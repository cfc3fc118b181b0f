"""Tests for linking authors to books."""

import pytest
from sqlalchemy import select

from bookcatalog.db.crud import AuthorCRUD, BookCRUD
from bookcatalog.db.models import BookAuthor
from tests.test_db.conftest import make_author, make_book


def _link_rows(session, book):
    return session.scalars(select(BookAuthor).where(BookAuthor.book_id == book.id)).all()


class TestAuthorCRUD:
    def test_create(self, session):
        author = make_author(session)
        assert author.id is not None
        assert author.name == "George Orwell"

    def test_create_empty_name_raises(self, session):
        with pytest.raises(ValueError, match="name"):
            AuthorCRUD.create(session, name="  ")

    def test_get_by_id_not_found(self, session):
        assert AuthorCRUD.get_by_id(session, 99999) is None

    def test_get_or_create_reuses_existing(self, session):
        existing = make_author(session, name="Ursula K. Le Guin")
        again = AuthorCRUD.get_or_create(session, "Ursula K. Le Guin")
        assert again.id == existing.id

    def test_get_or_create_creates_when_absent(self, session):
        author = AuthorCRUD.get_or_create(session, "Octavia E. Butler")
        assert AuthorCRUD.get_by_name(session, "Octavia E. Butler").id == author.id


class TestAddAuthors:
    def test_add_single_author(self, session):
        book = make_book(session)
        author = make_author(session)
        result = BookCRUD.add_authors(session, book, author)
        assert result == [author]
        assert book.authors == [author]
        assert len(_link_rows(session, book)) == 1

    def test_add_many_authors_appends_in_call_order(self, session):
        book = make_book(session, title="Good Omens")
        pratchett = make_author(session, name="Terry Pratchett")
        gaiman = make_author(session, name="Neil Gaiman")
        editor = make_author(session, name="An Editor")
        BookCRUD.add_authors(session, book, editor)
        BookCRUD.add_authors(session, book, [pratchett, gaiman])
        assert [a.name for a in book.authors] == [
            "An Editor",
            "Terry Pratchett",
            "Neil Gaiman",
        ]

    def test_add_already_linked_author_is_skipped(self, session):
        book = make_book(session)
        author = make_author(session)
        BookCRUD.add_authors(session, book, author)
        BookCRUD.add_authors(session, book, author)
        assert len(_link_rows(session, book)) == 1
        assert book.authors == [author]

    def test_add_repeated_author_in_one_call(self, session):
        book = make_book(session)
        author = make_author(session)
        BookCRUD.add_authors(session, book, [author, author])
        assert len(_link_rows(session, book)) == 1

    def test_add_no_authors(self, session):
        book = make_book(session)
        assert BookCRUD.add_authors(session, book, []) == []
        assert _link_rows(session, book) == []

    def test_add_accepts_generator(self, session):
        book = make_book(session)
        authors = [make_author(session, name=f"Author {i}") for i in range(3)]
        BookCRUD.add_authors(session, book, (a for a in authors))
        assert len(_link_rows(session, book)) == 3


class TestPopulateAuthors:
    def test_populate_matches_links(self, session):
        book = make_book(session)
        first = make_author(session, name="First")
        second = make_author(session, name="Second")
        BookCRUD.add_authors(session, book, [first])
        BookCRUD.add_authors(session, book, [second, first])

        fresh = BookCRUD.fetch_one(session, id=book.id)
        assert fresh.authors == []
        populated = BookCRUD.populate_authors(session, fresh)
        assert {a.id for a in populated} == {first.id, second.id}
        assert fresh.authors == populated

    def test_populate_only_this_books_authors(self, session):
        book = make_book(session, title="Mine")
        other = make_book(session, title="Other")
        mine = make_author(session, name="Mine")
        theirs = make_author(session, name="Theirs")
        BookCRUD.add_authors(session, book, mine)
        BookCRUD.add_authors(session, other, theirs)
        assert [a.id for a in BookCRUD.populate_authors(session, book)] == [mine.id]

    def test_populate_without_authors(self, session):
        book = make_book(session)
        assert BookCRUD.populate_authors(session, book) == []
        assert book.authors == []

    def test_populate_replaces_in_memory_list(self, session):
        book = make_book(session)
        linked = make_author(session, name="Linked")
        stray = make_author(session, name="Stray")
        BookCRUD.add_authors(session, book, linked)
        book.authors = [stray, linked]
        BookCRUD.populate_authors(session, book)
        assert [a.id for a in book.authors] == [linked.id]
