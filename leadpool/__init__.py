"""Derived-state engine for the lead/company pool dashboard.

The four operations the view layer calls:

- :func:`resolve_pool`    which pool a record is in right now
- :func:`is_visible`      whether a record shows in a view for an actor
- :func:`aggregate`       per-bucket pool counts over a snapshot
- :func:`plan_transition` what a lifecycle move should write
"""

from leadpool.services.aggregation import aggregate
from leadpool.services.category_resolver import resolve_pool
from leadpool.services.lifecycle import plan_transition
from leadpool.services.visibility import is_visible

__all__ = ["aggregate", "is_visible", "plan_transition", "resolve_pool"]
