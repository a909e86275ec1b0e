from enum import Enum


class LeadStage(str, Enum):
    top_of_funnel = "top_of_funnel"
    marketing_qualified = "marketing_qualified"
    sales_qualified = "sales_qualified"
    opportunity = "opportunity"


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class AgentStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class DecayType(str, Enum):
    percentage = "percentage"
    flat = "flat"


class LeadStatus(str, Enum):
    new = "new"
    working = "working"
    qualified = "qualified"
    disqualified = "disqualified"
    converted = "converted"
