from enum import Enum


class Origin(str, Enum):
    COMPANY = "company"
    SHARED_LEAD = "shared_lead"


class DeletionState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TEAM_LEAD_RECYCLE = "team_lead_recycle"
    ADMIN_RECYCLE = "admin_recycle"


class Category(str, Enum):
    HOT = "hot"
    FOLLOW_UP = "follow_up"
    BLOCK = "block"
    GENERAL = "general"
    PAID = "paid"
    SEO = "seo"


class Pool(str, Enum):
    PRIME = "prime"
    ACTIVE = "active"
    INACTIVE = "inactive"
    GENERAL = "general"
    UNCATEGORIZED = "uncategorized"
    # Sentinel for recycle-bin records; never shown in an ordinary pool view
    RECYCLED = "recycled"


class Role(str, Enum):
    ADMIN = "admin"
    TEAM_LEAD = "team_lead"
    EMPLOYEE = "employee"


class ViewKind(str, Enum):
    ASSIGNED = "assigned"
    PRIME = "prime"
    ACTIVE = "active"
    INACTIVE = "inactive"
    GENERAL = "general"
    TEAM_LEAD_RECYCLE = "team_lead_recycle"
    ADMIN_RECYCLE = "admin_recycle"


class AssignmentWindow(str, Enum):
    UNASSIGNED = "unassigned"
    FRESH = "fresh"
    # Window elapsed with no comment: eligible for automatic unassignment
    EXPIRED = "expired"
    # A comment exists: the record has moved on into a categorized pool
    WORKED = "worked"


class GroupKey(str, Enum):
    OWNER = "owner"
    ORIGIN = "origin"
    NONE = "none"
