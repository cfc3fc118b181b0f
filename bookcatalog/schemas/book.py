"""Book entity and the typed payloads used to create and patch books.

``BookEntity`` is a plain in-memory snapshot of one ``books`` row. It holds no
session or connection; ``bookcatalog.db.crud.BookCRUD`` reads and writes it.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookcatalog.validation import require_non_empty, validate_year

from .author import AuthorEntity

# Columns written by a full save.
PERSISTED_FIELDS = (
    "title",
    "description",
    "publication_year",
    "cover_image",
    "identifier",
)

_ROW_FIELDS = ("id", *PERSISTED_FIELDS, "created_at", "updated_at", "avg_rating")


def _truncate_rating(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(Decimal(str(value)))
    except InvalidOperation as exc:
        raise ValueError(f"avg_rating must be numeric, got {value!r}") from exc


class BookEntity(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: int
    title: str
    description: str | None = None
    publication_year: int
    cover_image: str | None = None
    identifier: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Derived: unset until computed / populated.
    avg_rating: int | None = None
    authors: list[AuthorEntity] = Field(default_factory=list)

    @field_validator("avg_rating", mode="before")
    @classmethod
    def truncate_avg_rating(cls, value: Any) -> int | None:
        return _truncate_rating(value)

    @classmethod
    def from_row(cls, row: Any, **extra: Any) -> BookEntity:
        """Build an entity from a row mapping or a ``Book`` ORM instance.

        ``extra`` overrides row values, e.g. an aggregated ``avg_rating``.
        """
        if isinstance(row, Mapping):
            data = {key: row[key] for key in _ROW_FIELDS if key in row}
        else:
            data = {key: getattr(row, key) for key in _ROW_FIELDS if hasattr(row, key)}
        data.update(extra)
        return cls.model_validate(data)

    def persisted_values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in PERSISTED_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        exclude = set()
        if not self.authors:
            exclude.add("authors")
        if self.avg_rating is None:
            exclude.add("avg_rating")
        return self.model_dump(mode="json", exclude=exclude)


class BookCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    description: str | None = None
    publication_year: int
    cover_image: str | None = None
    identifier: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, value: Any) -> str:
        return require_non_empty(value, "title")

    @field_validator("publication_year", mode="before")
    @classmethod
    def validate_publication_year(cls, value: Any) -> int:
        return validate_year(value)


class BookPatch(BaseModel):
    """Partial update. Only fields passed explicitly are written, so an
    explicit ``description=None`` clears the column while an omitted field is
    left alone."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    publication_year: int | None = None
    cover_image: str | None = None
    identifier: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, value: Any) -> str:
        return require_non_empty(value, "title")

    @field_validator("publication_year", mode="before")
    @classmethod
    def validate_publication_year(cls, value: Any) -> int:
        return validate_year(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
