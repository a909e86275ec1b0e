import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from leadintake.core.config import settings
from leadintake.core.constants import SALES_ASSIGNMENT_TEMPLATE
from leadintake.core.exceptions import ValidationError
from leadintake.repositories.agent_repository import AgentRepository
from leadintake.repositories.lead_repository import LeadRepository
from leadintake.schemas.assignment import AssignmentResult, LeadAssignmentInput
from leadintake.schemas.common import LeadStatus
from leadintake.schemas.lead import (
    LeadAssignmentSummary,
    LeadCreate,
    LeadCreationResult,
    LeadScoringSummary,
)
from leadintake.schemas.scoring import QualificationResult
from leadintake.services.country_service import CountryService
from leadintake.services.crm_settings import CrmSettingsService
from leadintake.services.lead_assignment import LeadAssignmentService
from leadintake.services.lead_priority import resolve_priority
from leadintake.services.lead_scoring import LeadScoringEngine
from leadintake.services.notification_service import NotificationSender

logger = logging.getLogger(__name__)

MANUAL_ASSIGNMENT_REASON = "Assigned manually at creation"


class LeadCreationService:
    """Orchestrates intake of a single inbound lead.

    Dependencies are injected via the constructor so the class remains
    stateless and easily testable.
    """

    def __init__(
        self,
        scoring_engine: LeadScoringEngine,
        assignment_service: LeadAssignmentService,
        settings_service: CrmSettingsService,
        country_service: CountryService,
        notifier: Optional[NotificationSender] = None,
    ) -> None:
        self._scoring = scoring_engine
        self._assignment = assignment_service
        self._settings = settings_service
        self._countries = country_service
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_lead(
        self,
        lead_input: LeadCreate,
        tenant_id: UUID,
        lead_repo: LeadRepository,
        agent_repo: AgentRepository,
        created_by: Optional[UUID] = None,
    ) -> LeadCreationResult:
        """Run the intake pipeline and persist the lead.

        Steps:
        1. GDPR gate (consent and consent IP for flagged countries)
        2. Lead code
        3. Scoring
        4. Priority
        5. Active agent pool
        6. Assignment
        7. Expansion-market tagging
        8. Persist (caller ``priority`` / ``assigned_to_id`` win)
        9. Notify the assignee, best-effort

        Raises:
            ValidationError: GDPR consent or consent IP missing.
            ConfigurationError: scoring or assignment rules unusable.
        """
        country_code = lead_input.country_code

        # 1. Compliance gate, before any other work
        if country_code and await self._countries.is_gdpr_country(country_code):
            if not lead_input.gdpr_consent:
                raise ValidationError(
                    f"GDPR consent required for EU/EEA countries (country: {country_code})"
                )
            if not (lead_input.consent_ip or "").strip():
                raise ValidationError("Consent IP address required for GDPR compliance")

        now = datetime.now(timezone.utc)

        # 2. Lead code
        lead_code = await lead_repo.generate_lead_code(now.year)

        # 3. Scoring
        scoring = await self._scoring.calculate_lead_scores(lead_input.scoring_input())

        # 4. Priority (never fails)
        priority = await resolve_priority(scoring.qualification_score, self._settings)

        # 5. Active agent pool
        employees = await agent_repo.list_active()

        # 6. Assignment
        assignment = await self._assignment.assign_to_sales_rep(
            LeadAssignmentInput(
                fleet_size=lead_input.fleet_size, country_code=country_code
            ),
            employees,
        )

        # 7. Expansion tagging
        metadata = await self._tag_expansion(lead_input.metadata, country_code, now)

        # 8. Persist
        final_priority = lead_input.priority.value if lead_input.priority else priority
        if lead_input.assigned_to_id is not None:
            final_assignment = LeadAssignmentSummary(
                assigned_to=lead_input.assigned_to_id,
                assignment_reason=MANUAL_ASSIGNMENT_REASON,
            )
        else:
            final_assignment = LeadAssignmentSummary(
                assigned_to=assignment.assigned_to,
                assignment_reason=assignment.assignment_reason,
            )

        lead = await lead_repo.create(
            self._lead_data(
                lead_input,
                lead_code=lead_code,
                scoring=scoring,
                priority=final_priority,
                assigned_to=final_assignment.assigned_to,
                metadata=metadata,
                now=now,
            ),
            created_by,
            tenant_id,
        )
        await lead_repo.commit()

        logger.info(
            "Created lead %s (%s): stage=%s score=%s priority=%s assigned_to=%s rule=%s",
            lead.id,
            lead_code,
            scoring.lead_stage.value,
            scoring.qualification_score,
            final_priority,
            final_assignment.assigned_to,
            assignment.matched_rule,
        )

        # 9. Notify
        await self._notify_assignee(
            lead,
            lead_input,
            employees,
            final_assignment.assigned_to,
            final_priority,
            scoring,
            tenant_id,
        )

        return LeadCreationResult(
            lead=lead,
            scoring=LeadScoringSummary(
                fit_score=scoring.fit_score,
                engagement_score=scoring.engagement_score,
                qualification_score=scoring.qualification_score,
                lead_stage=scoring.lead_stage.value,
            ),
            assignment=final_assignment,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _tag_expansion(
        self,
        metadata: Dict[str, Any],
        country_code: Optional[str],
        now: datetime,
    ) -> Dict[str, Any]:
        """Copy *metadata*, adding expansion flags for non-operational countries.

        Keys already present in the submitted metadata are kept as-is.
        """
        enriched = dict(metadata or {})
        if country_code and not await self._countries.is_operational(country_code):
            for key, value in (
                ("expansion_opportunity", True),
                ("expansion_country", country_code),
                ("expansion_detected_at", now.isoformat()),
            ):
                enriched.setdefault(key, value)
        return enriched

    @staticmethod
    def _lead_data(
        lead_input: LeadCreate,
        lead_code: str,
        scoring: QualificationResult,
        priority: str,
        assigned_to: Any,
        metadata: Dict[str, Any],
        now: datetime,
    ) -> Dict[str, Any]:
        return {
            "lead_code": lead_code,
            "email": lead_input.email,
            "first_name": lead_input.first_name,
            "last_name": lead_input.last_name,
            "company_name": lead_input.company_name,
            "phone": lead_input.phone,
            "fleet_size": lead_input.fleet_size,
            "country_code": lead_input.country_code,
            "city": lead_input.city,
            "website_url": lead_input.website_url,
            "current_software": lead_input.current_software,
            "message": lead_input.message,
            "source": lead_input.source,
            "utm_source": lead_input.utm_source,
            "utm_medium": lead_input.utm_medium,
            "utm_campaign": lead_input.utm_campaign,
            "fit_score": scoring.fit_score,
            "engagement_score": scoring.engagement_score,
            "qualification_score": scoring.qualification_score,
            "lead_stage": scoring.lead_stage.value,
            "scoring": scoring.breakdown.model_dump(mode="json"),
            "priority": priority,
            "assigned_to": assigned_to,
            "status": LeadStatus.new.value,
            "gdpr_consent": lead_input.gdpr_consent,
            "consent_at": now if lead_input.gdpr_consent else None,
            "consent_ip": lead_input.consent_ip,
            "lead_metadata": metadata,
        }

    async def _notify_assignee(
        self,
        lead: Any,
        lead_input: LeadCreate,
        employees: List[Any],
        assigned_to: Any,
        priority: str,
        scoring: QualificationResult,
        tenant_id: UUID,
    ) -> None:
        """Tell the assigned agent about the new lead.

        Only agents from the active pool are notified.  Failures are logged
        and never propagate: the lead is already committed.
        """
        if self._notifier is None or assigned_to is None:
            return
        employee = next(
            (emp for emp in employees if str(emp.id) == str(assigned_to)), None
        )
        if employee is None:
            return

        try:
            result = await self._notifier.send(
                SALES_ASSIGNMENT_TEMPLATE,
                employee.email,
                {
                    "employee_name": employee.first_name,
                    "lead_name": lead_input.display_name,
                    "company_name": lead_input.company_name or "N/A",
                    "priority": priority,
                    "fit_score": scoring.fit_score,
                    "qualification_score": scoring.qualification_score,
                    "lead_stage": scoring.lead_stage.value,
                    "fleet_size": lead_input.fleet_size or "N/A",
                    "country_code": lead_input.country_code or "N/A",
                    "lead_detail_url": f"{settings.APP_BASE_URL}/crm/leads/{lead.id}",
                },
                lead_id=str(lead.id),
                tenant_id=str(tenant_id),
                idempotency_key=f"sales_rep_assignment_{lead.id}",
            )
            logger.info(
                "Assignment notification for lead %s to %s queued=%s queue_id=%s",
                lead.id,
                employee.email,
                result.success,
                result.queue_id,
            )
        except Exception:
            logger.error(
                "Failed to queue assignment notification for lead %s",
                lead.id,
                exc_info=True,
            )
