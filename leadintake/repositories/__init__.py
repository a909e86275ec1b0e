"""Repository layer: all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from leadintake.repositories.lead_repository import LeadRepository
from leadintake.repositories.agent_repository import AgentRepository
from leadintake.repositories.crm_settings_repository import CrmSettingsRepository
from leadintake.repositories.country_repository import CountryRepository

__all__ = [
    "LeadRepository",
    "AgentRepository",
    "CrmSettingsRepository",
    "CountryRepository",
]
