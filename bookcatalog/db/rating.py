"""Weighted average rating.

Each rating contributes its own value as weight, so a rating ``r`` in 1..5
adds ``r * r`` to the numerator and ``r`` to the denominator; a rating of 0
counts toward neither side's weight but still reaches the denominator as 0.
This biases the aggregate toward the higher ratings a book has received:

    avg = SUM(weight(rating)) / NULLIF(SUM(rating), 0), or 0

Both the per-book and the catalog-wide queries build on
:func:`weighted_rating`; :func:`weighted_average` is the same formula for
in-memory rating lists.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import Float, Integer, case, cast, func
from sqlalchemy.sql.elements import ColumnElement

from bookcatalog.validation import RATING_MAX, RATING_MIN, validate_rating


def _weight_case(rating: ColumnElement[int]) -> ColumnElement[int]:
    return case(
        *[(rating == score, rating * score) for score in range(RATING_MIN, RATING_MAX + 1)]
    )


def weighted_rating(rating: ColumnElement[int]) -> ColumnElement[float]:
    """Aggregate SQL expression for the weighted average of ``rating``.

    Must be used in a grouped (or whole-table) aggregate query. Evaluates to 0
    when every rating is 0.
    """
    numerator = cast(func.sum(_weight_case(rating)), Float)
    denominator = func.nullif(func.sum(rating), 0, type_=Integer)
    return func.coalesce(numerator / denominator, 0, type_=Float)


def weighted_average(ratings: Iterable[int]) -> int:
    """Python counterpart of :func:`weighted_rating`, truncated to an int."""
    numerator = 0
    denominator = 0
    for rating in ratings:
        validate_rating(rating)
        numerator += rating * rating
        denominator += rating
    if denominator == 0:
        return 0
    return numerator // denominator
