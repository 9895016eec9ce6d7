"""Category resolution: which pool a record belongs to right now.

The pool is derived on every read from two inputs only: the record's
deletion state and its most recent comment.  Nothing here is cached.
"""

from typing import Iterable, Optional, Tuple

from leadpool.core.constants import CATEGORY_TO_POOL, RECYCLE_STATES
from leadpool.core.exceptions import DataIntegrityError
from leadpool.schemas.common import Category, DeletionState, Pool
from leadpool.schemas.record import Comment, Record


def _id_sort_key(comment_id: str) -> Tuple[int, int, str]:
    # Numeric ids order numerically and rank below non-numeric ones
    if comment_id.isascii() and comment_id.isdigit():
        return (0, int(comment_id), "")
    return (1, 0, comment_id)


def latest_comment(comments: Iterable[Comment]) -> Optional[Comment]:
    """Return the most recent comment, or ``None`` for an empty history.

    Ordered by ``created_at``; ties go to the highest id, then to the
    comment supplied last.  The result never depends on the order the
    store happened to return rows in, except for that final fallback.
    """
    best: Optional[Tuple[tuple, Comment]] = None
    for position, comment in enumerate(comments):
        key = (comment.created_at, _id_sort_key(comment.id), position)
        if best is None or key > best[0]:
            best = (key, comment)
    return best[1] if best else None


def category_to_pool(category: Category) -> Pool:
    """Map a comment category onto its pool."""
    try:
        return CATEGORY_TO_POOL[Category(category)]
    except (KeyError, ValueError):
        raise DataIntegrityError(f"Unknown comment category: {category!r}") from None


def resolve_pool(record: Record) -> Pool:
    """Return the pool *record* belongs to.

    1. Either recycle tier -> ``Pool.RECYCLED``.
    2. ``INACTIVE`` -> ``Pool.INACTIVE`` whatever the comments say.
    3. Otherwise the latest comment's category decides; no comments
       means ``Pool.UNCATEGORIZED``.
    """
    if record.deletion_state in RECYCLE_STATES:
        return Pool.RECYCLED
    if record.deletion_state == DeletionState.INACTIVE:
        return Pool.INACTIVE

    latest = latest_comment(record.comments)
    if latest is None:
        return Pool.UNCATEGORIZED
    try:
        return category_to_pool(latest.category)
    except DataIntegrityError as exc:
        exc.record_id = record.id
        raise
