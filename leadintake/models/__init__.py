from leadintake.models.base import Base
from leadintake.models.agent import Agent
from leadintake.models.country import Country
from leadintake.models.crm_setting import CrmSetting
from leadintake.models.lead import Lead

# Import event listeners to register them
from leadintake.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "Agent",
    "Country",
    "CrmSetting",
    "Lead",
]
