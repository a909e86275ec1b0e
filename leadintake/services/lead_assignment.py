import logging
from typing import Any, Dict, List, Sequence, Union

from leadintake.core.constants import (
    FALLBACK_PATTERN_RULE,
    FALLBACK_SPECIFIC_RULE,
    NO_EMPLOYEES_REASON,
    ULTIMATE_FALLBACK_RULE,
)
from leadintake.schemas.assignment import AssignmentResult, LeadAssignmentInput
from leadintake.schemas.crm_settings import AssignmentRulesConfig
from leadintake.services.crm_settings import CrmSettingsService

logger = logging.getLogger(__name__)


def select_smallest_id(employees: Sequence[Any]) -> Any:
    """Return the employee with the smallest id.

    Ids compare numerically when every id is an int, otherwise as strings.
    The choice depends only on the candidate set, never on time or order.
    """
    ids = [emp.id for emp in employees]
    if all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        return min(employees, key=lambda emp: emp.id)
    return min(employees, key=lambda emp: str(emp.id))


def _full_name(employee: Any) -> str:
    first = getattr(employee, "first_name", None) or ""
    last = getattr(employee, "last_name", None) or ""
    return f"{first} {last}".strip() or str(employee.id)


def assign_to_sales_rep(
    lead_input: Union[LeadAssignmentInput, Dict[str, Any]],
    eligible_employees: Sequence[Any],
    rules: AssignmentRulesConfig,
) -> AssignmentResult:
    """Route a lead to one agent through the ordered rule chain.

    Employees are any objects exposing ``id`` and ``title`` (ORM agents or
    :class:`EligibleAgent`).  Tiers, first winner stops:

    1. fleet size rule for the lead's tier (include and not exclude titles)
    2. geographic zones listing the lead's country, by ascending priority
    3. configured fallback employee, then the fallback title pattern
    4. any employee in the pool

    Within a tier the smallest-id employee wins.
    """
    if not isinstance(lead_input, LeadAssignmentInput):
        lead_input = LeadAssignmentInput.model_validate(lead_input)

    if not eligible_employees:
        return AssignmentResult(assigned_to=None, assignment_reason=NO_EMPLOYEES_REASON)

    fleet_size = lead_input.fleet_size
    if fleet_size and fleet_size in rules.fleet_size_priority:
        rule = rules.fleet_size_priority[fleet_size]
        matched = [emp for emp in eligible_employees if rule.matches(emp.title)]
        if matched:
            return AssignmentResult(
                assigned_to=select_smallest_id(matched).id,
                assignment_reason=f"Fleet size priority rule '{fleet_size}' matched",
                matched_rule=fleet_size,
                eligible_employees_count=len(matched),
            )

    country_code = lead_input.country_code
    if country_code:
        for zone_name, zone in rules.zones_for_country(country_code):
            matched = [emp for emp in eligible_employees if zone.matches(emp.title)]
            if matched:
                return AssignmentResult(
                    assigned_to=select_smallest_id(matched).id,
                    assignment_reason=(
                        f"Geographic zone '{zone_name}' matched for country {country_code}"
                    ),
                    matched_rule=zone_name,
                    eligible_employees_count=len(matched),
                )

    fallback = rules.fallback
    if fallback.employee_id:
        for emp in eligible_employees:
            if str(emp.id) == fallback.employee_id:
                return AssignmentResult(
                    assigned_to=emp.id,
                    assignment_reason=f"Fallback employee '{_full_name(emp)}' selected",
                    matched_rule=FALLBACK_SPECIFIC_RULE,
                    eligible_employees_count=1,
                )

    matched = [emp for emp in eligible_employees if fallback.matches(emp.title)]
    if matched:
        return AssignmentResult(
            assigned_to=select_smallest_id(matched).id,
            assignment_reason=f"Fallback title pattern '{fallback.title_pattern}' matched",
            matched_rule=FALLBACK_PATTERN_RULE,
            eligible_employees_count=len(matched),
        )

    return AssignmentResult(
        assigned_to=select_smallest_id(eligible_employees).id,
        assignment_reason="Ultimate fallback: no rule matched, selected active employee",
        matched_rule=ULTIMATE_FALLBACK_RULE,
        eligible_employees_count=len(eligible_employees),
    )


class LeadAssignmentService:
    """Load ``lead_assignment_rules`` and run the rule chain."""

    def __init__(self, settings_service: CrmSettingsService) -> None:
        self._settings = settings_service

    async def assign_to_sales_rep(
        self,
        lead_input: Union[LeadAssignmentInput, Dict[str, Any]],
        employees: List[Any],
    ) -> AssignmentResult:
        """Assign a lead; an empty pool short-circuits before the rules are read."""
        if not employees:
            logger.warning("No active employees available; lead left unassigned")
            return assign_to_sales_rep(lead_input, employees, AssignmentRulesConfig())

        rules = await self._settings.load_assignment_rules()
        result = assign_to_sales_rep(lead_input, employees, rules)
        logger.info(
            "Assignment rule %s selected %s (%s candidates)",
            result.matched_rule,
            result.assigned_to,
            result.eligible_employees_count,
        )
        return result
