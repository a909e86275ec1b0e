from typing import FrozenSet, Tuple

# crm_settings keys read by the engine
LEAD_SCORING_CONFIG_KEY: str = "lead_scoring_config"
LEAD_ASSIGNMENT_RULES_KEY: str = "lead_assignment_rules"
LEAD_PRIORITY_CONFIG_KEY: str = "lead_priority_config"
SCORE_DECAY_KEY: str = "score_decay"

SETTING_KEYS: Tuple[str, ...] = (
    LEAD_SCORING_CONFIG_KEY,
    LEAD_ASSIGNMENT_RULES_KEY,
    LEAD_PRIORITY_CONFIG_KEY,
    SCORE_DECAY_KEY,
)

LEAD_STAGES: FrozenSet[str] = frozenset(
    {"top_of_funnel", "marketing_qualified", "sales_qualified", "opportunity"}
)

# Stages the scoring engine may assign; "opportunity" comes from conversion only
SCORED_STAGES: FrozenSet[str] = LEAD_STAGES - {"opportunity"}

PRIORITY_LEVELS: FrozenSet[str] = frozenset({"low", "medium", "high", "urgent"})

# Fleet tier used when fleet_size is null or not configured
UNKNOWN_FLEET_SIZE: str = "unknown"

# Assignment rule labels for the non-configurable tiers
FALLBACK_SPECIFIC_RULE: str = "fallback_specific"
FALLBACK_PATTERN_RULE: str = "fallback_pattern"
ULTIMATE_FALLBACK_RULE: str = "ultimate_fallback"

NO_EMPLOYEES_REASON: str = "No active employees available for assignment"

SALES_ASSIGNMENT_TEMPLATE: str = "crm.sales.assignment"

LEAD_CODE_PREFIX: str = "LEAD"
