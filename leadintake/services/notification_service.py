import logging
from typing import Any, Dict, Optional

import httpx

from leadintake.core.config import settings
from leadintake.core.exceptions import NotificationDeliveryError
from leadintake.schemas.notification import NotificationResult

logger = logging.getLogger(__name__)


class NotificationSender:
    """Queue templated notifications on the external notification service.

    With no ``NOTIFICATION_SERVICE_URL`` configured, sends are logged and
    reported as not queued.  Transport failures raise
    ``NotificationDeliveryError``; callers decide whether that matters.
    """

    def __init__(
        self,
        service_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._service_url: str = (
            service_url
            if service_url is not None
            else settings.NOTIFICATION_SERVICE_URL
        )
        self._timeout: float = (
            timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT_SECONDS
        )
        self._transport = transport

    async def send(
        self,
        template: str,
        recipient: str,
        variables: Dict[str, Any],
        lead_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> NotificationResult:
        if not self._service_url:
            logger.info(
                "Notification service not configured; %s for %s not sent",
                template,
                recipient,
            )
            return NotificationResult(success=False)

        payload = {
            "template": template,
            "recipient": recipient,
            "variables": variables,
            "lead_id": lead_id,
            "tenant_id": tenant_id,
        }
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else {}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._service_url, json=payload, headers=headers
                )
                response.raise_for_status()
        except httpx.TimeoutException:
            logger.error("Notification service timed out: %s", self._service_url)
            raise NotificationDeliveryError("Notification service timed out")
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Notification service returned %s for template %s",
                exc.response.status_code,
                template,
            )
            raise NotificationDeliveryError(
                f"Notification service returned {exc.response.status_code}"
            )
        except httpx.HTTPError as exc:
            logger.error(
                "Notification service unreachable: %s (%s)", self._service_url, exc
            )
            raise NotificationDeliveryError("Notification service unavailable")

        try:
            body = response.json()
        except ValueError:
            body = {}
        queue_id = body.get("queue_id") if isinstance(body, dict) else None
        return NotificationResult(
            success=True, queue_id=str(queue_id) if queue_id is not None else None
        )
