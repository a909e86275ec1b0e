from typing import Any, Dict, List

from leadintake.core.constants import (
    LEAD_ASSIGNMENT_RULES_KEY,
    LEAD_PRIORITY_CONFIG_KEY,
    LEAD_SCORING_CONFIG_KEY,
    SCORE_DECAY_KEY,
)

EU_COUNTRIES: List[str] = [
    "DE", "IT", "ES", "BE", "NL", "PT", "AT", "IE", "DK", "SE", "FI", "GR", "PL",
    "CZ", "HU", "RO", "BG", "HR", "SI", "SK", "LT", "LV", "EE", "CY", "LU", "MT",
]

MENA_COUNTRIES: List[str] = ["KW", "BH", "OM", "QA", "JO", "LB", "EG", "MA", "TN", "DZ"]


DEFAULT_LEAD_SCORING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "fleet_size_points": {
        "500+": {"vehicles": 600, "points": 40},
        "101-500": {"vehicles": 250, "points": 35},
        "51-100": {"vehicles": 75, "points": 30},
        "11-50": {"vehicles": 30, "points": 20},
        "1-10": {"vehicles": 5, "points": 5},
        "unknown": {"vehicles": 30, "points": 10},
    },
    "country_tier_points": {
        "tier1": {"countries": ["AE", "SA", "QA"], "points": 20},
        "tier2": {"countries": ["FR"], "points": 18},
        "tier3": {"countries": ["KW", "BH", "OM"], "points": 15},
        "tier4": {"countries": EU_COUNTRIES, "points": 12},
        "tier5": {"points": 5},
    },
    "message_length_thresholds": {
        "detailed": {"min": 200, "points": 30},
        "substantial": {"min": 100, "points": 20},
        "minimal": {"min": 20, "points": 10},
        "none": {"points": 0},
    },
    "phone_points": {"provided": 20, "missing": 0},
    "page_views_thresholds": {
        "very_engaged": {"min": 10, "points": 30},
        "interested": {"min": 5, "points": 20},
        "curious": {"min": 2, "points": 10},
        "normal": {"points": 5},
    },
    "time_on_site_thresholds": {
        "deep_read": {"min": 600, "points": 20},
        "moderate": {"min": 300, "points": 15},
        "brief": {"min": 120, "points": 10},
        "quick": {"points": 5},
    },
    "qualification_stage_thresholds": {
        "sales_qualified": 70,
        "marketing_qualified": 40,
        "top_of_funnel": 0,
    },
    "qualification_weights": {"fit": 0.6, "engagement": 0.4},
}


DEFAULT_LEAD_ASSIGNMENT_RULES: Dict[str, Any] = {
    "version": 1,
    "fleet_size_priority": {
        "500+": {"title_patterns": ["%Senior%Account%Manager%"], "priority": 1},
        "101-500": {
            "title_patterns": ["%Account%Manager%"],
            "exclude_patterns": ["%Senior%"],
            "priority": 2,
        },
    },
    "geographic_zones": {
        "UAE": {"countries": ["AE"], "title_patterns": ["%UAE%", "%Emirates%"], "priority": 10},
        "KSA": {"countries": ["SA"], "title_patterns": ["%KSA%", "%Saudi%"], "priority": 11},
        "FRANCE": {"countries": ["FR"], "title_patterns": ["%France%"], "priority": 12},
        "MENA": {
            "countries": MENA_COUNTRIES,
            "title_patterns": ["%MENA%", "%Middle East%"],
            "priority": 13,
        },
        "EU": {"countries": EU_COUNTRIES, "title_patterns": ["%EU%", "%Europe%"], "priority": 14},
        "INTERNATIONAL": {"countries": [], "title_patterns": ["%International%"], "priority": 15},
    },
    "fallback": {"employee_id": None, "title_pattern": "%Sales%Manager%"},
}


DEFAULT_LEAD_PRIORITY_CONFIG: Dict[str, Any] = {
    "priority_levels": ["low", "medium", "high", "urgent"],
    "thresholds": {
        "urgent": {"min": 80, "color": "red", "label": "Urgent", "order": 4},
        "high": {"min": 70, "color": "orange", "label": "High", "order": 3},
        "medium": {"min": 40, "color": "yellow", "label": "Medium", "order": 2},
        "low": {"min": 0, "color": "gray", "label": "Low", "order": 1},
    },
    "default": "medium",
}


DEFAULT_SCORE_DECAY_CONFIG: Dict[str, Any] = {
    "enabled": True,
    "inactivity_threshold_days": 30,
    "decay_type": "percentage",
    "decay_value": 20,
    "minimum_score": 5,
}


DEFAULT_CRM_SETTINGS: Dict[str, Dict[str, Any]] = {
    LEAD_SCORING_CONFIG_KEY: DEFAULT_LEAD_SCORING_CONFIG,
    LEAD_ASSIGNMENT_RULES_KEY: DEFAULT_LEAD_ASSIGNMENT_RULES,
    LEAD_PRIORITY_CONFIG_KEY: DEFAULT_LEAD_PRIORITY_CONFIG,
    SCORE_DECAY_KEY: DEFAULT_SCORE_DECAY_CONFIG,
}
