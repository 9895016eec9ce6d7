"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the services only
deal with engine records and plans.
"""

from leadpool.repositories.record_repository import RecordRepository
from leadpool.repositories.share_repository import ShareRepository
from leadpool.repositories.team_repository import TeamRepository

__all__ = [
    "RecordRepository",
    "ShareRepository",
    "TeamRepository",
]
