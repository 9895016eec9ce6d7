from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadpool.models.base import Base


# No CHECK on ``category``: unknown values are reported when rows are
# normalized into records rather than rejected on write.
class CompanyComment(Base):
    __tablename__ = "comments"
    id = Column(UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid())
    company_id = Column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(UUID(as_uuid=True))
    comment_text = Column(Text, nullable=False, server_default="")
    category = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    company = relationship("Company", back_populates="comments")


class FacebookLeadComment(Base):
    __tablename__ = "facebook_data_comments"
    id = Column(Integer, primary_key=True, autoincrement=True)
    facebook_data_id = Column(
        Integer,
        ForeignKey("facebook_data.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(UUID(as_uuid=True))
    comment_text = Column(Text, nullable=False, server_default="")
    category = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("FacebookLead", back_populates="comments")
