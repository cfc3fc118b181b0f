import logging

from bookcatalog.config import get_settings
from bookcatalog.db.crud import AuthorCRUD, BookCRUD, UserBookCRUD, UserCRUD
from bookcatalog.db.session import SessionLocal

logger = logging.getLogger(__name__)

SAMPLE_BOOKS = [
    {
        "title": "Nineteen Eighty-Four",
        "description": "A dystopian social science fiction novel.",
        "publication_year": 1949,
        "identifier": "9780451524935",
        "authors": ["George Orwell"],
    },
    {
        "title": "Good Omens",
        "description": "The Nice and Accurate Prophecies of Agnes Nutter, Witch.",
        "publication_year": 1990,
        "identifier": "9780060853983",
        "authors": ["Terry Pratchett", "Neil Gaiman"],
    },
]


def seed():
    with SessionLocal() as db:
        admin = UserCRUD.get_by_email(db, "admin@example.com")
        if admin is None:
            admin = UserCRUD.create(
                db,
                email="admin@example.com",
                name="Admin",
                password_hash="seeded-admin-password",
            )
            logger.info("Created admin user id=%s", admin.id)

        for sample in SAMPLE_BOOKS:
            data = {key: value for key, value in sample.items() if key != "authors"}
            if BookCRUD.fetch_one(db, identifier=data["identifier"]):
                continue
            book = BookCRUD.create(db, data)
            authors = [AuthorCRUD.get_or_create(db, name) for name in sample["authors"]]
            BookCRUD.add_authors(db, book, authors)
            UserBookCRUD.rate(db, admin.id, book.id, 5)
            logger.info("Seeded book %r with %d author(s)", book.title, len(authors))

        db.commit()


if __name__ == "__main__":
    logging.basicConfig(
        level=get_settings().LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    seed()
