"""API-layer dependency functions.

Re-exports all dependency factories from ``leadintake.dependencies`` so
that endpoint modules only need to import from ``leadintake.api.deps``.
"""

from leadintake.dependencies import (
    # Repository factories
    get_lead_repo,
    get_agent_repo,
    get_settings_repo,
    get_country_repo,
    # Service factories
    get_settings_service,
    get_country_service,
    get_scoring_engine,
    get_assignment_service,
    get_notification_sender,
    get_lead_creation_service,
    # Redis / sessions
    get_redis_client,
    get_cache_service,
    get_session_factory,
)

__all__ = [
    "get_lead_repo",
    "get_agent_repo",
    "get_settings_repo",
    "get_country_repo",
    "get_settings_service",
    "get_country_service",
    "get_scoring_engine",
    "get_assignment_service",
    "get_notification_sender",
    "get_lead_creation_service",
    "get_redis_client",
    "get_cache_service",
    "get_session_factory",
]
