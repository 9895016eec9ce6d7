from sqlalchemy import Column, DateTime, String, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadpool.models.base import Base
from leadpool.core.constants import DELETION_STATE_CHECK_CLAUSE


class Company(Base):
    """A company record worked by employees through the category pools.

    ``deletion_state`` is NULL while the company is active.  The deletion
    columns move together: ``deleted_at``/``deleted_by_id`` are set exactly
    when ``deletion_state`` is not NULL.
    """

    __tablename__ = "companies"
    id = Column(UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid())
    company_name = Column(String(255), nullable=False)
    owner_name = Column(String(255))
    phone = Column(String(50))
    email = Column(String(255))
    assigned_to_id = Column(UUID(as_uuid=True), index=True)
    assigned_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deletion_state = Column(String(30))
    deleted_at = Column(DateTime(timezone=True))
    deleted_by_id = Column(UUID(as_uuid=True))

    comments = relationship(
        "CompanyComment", back_populates="company", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_companies_deletion_state", "deletion_state"),
        CheckConstraint(DELETION_STATE_CHECK_CLAUSE, name="ck_company_deletion_state"),
    )
