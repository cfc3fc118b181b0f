from .author import AuthorEntity
from .book import BookCreate, BookEntity, BookPatch

__all__ = [
    "AuthorEntity",
    "BookCreate",
    "BookEntity",
    "BookPatch",
]
