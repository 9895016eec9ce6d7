from leadpool.models.base import Base
from leadpool.models.company import Company
from leadpool.models.facebook_lead import FacebookLead, FacebookLeadShare
from leadpool.models.comment import CompanyComment, FacebookLeadComment
from leadpool.models.team import Team, TeamMember

__all__ = [
    "Base",
    "Company",
    "FacebookLead",
    "FacebookLeadShare",
    "CompanyComment",
    "FacebookLeadComment",
    "Team",
    "TeamMember",
]
