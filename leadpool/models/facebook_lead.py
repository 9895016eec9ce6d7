from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadpool.models.base import Base
from leadpool.core.constants import DELETION_STATE_CHECK_CLAUSE


class FacebookLead(Base):
    """A lead imported from Facebook and shared with employees.

    Access is granted per employee through :class:`FacebookLeadShare`;
    the share's ``created_at`` starts that employee's assignment window.
    """

    __tablename__ = "facebook_data"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deletion_state = Column(String(30))
    deleted_at = Column(DateTime(timezone=True))
    deleted_by_id = Column(UUID(as_uuid=True))

    comments = relationship(
        "FacebookLeadComment", back_populates="lead", cascade="all, delete-orphan"
    )
    shares = relationship(
        "FacebookLeadShare", back_populates="lead", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(DELETION_STATE_CHECK_CLAUSE, name="ck_facebook_deletion_state"),
    )


class FacebookLeadShare(Base):
    __tablename__ = "facebook_data_shares"
    id = Column(Integer, primary_key=True, autoincrement=True)
    facebook_data_id = Column(
        Integer, ForeignKey("facebook_data.id", ondelete="CASCADE"), nullable=False
    )
    employee_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("FacebookLead", back_populates="shares")

    __table_args__ = (
        UniqueConstraint("facebook_data_id", "employee_id", name="uq_facebook_share"),
    )
