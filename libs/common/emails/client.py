"""
Email client for handing notifications to the Communications Service.

Template rendering and delivery belong to the Communications Service; this
client only forwards a template type and its data. Delivery failures are
logged and reported as ``False``, never raised.

Usage:
    from libs.common.emails.client import get_email_client

    email_client = get_email_client()
    await email_client.send_template(
        template_type="instructor_assignment",
        to_email="coach@example.com",
        template_data={"instructor_name": "Sam"},
    )
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class EmailClient:
    """
    HTTP client for sending emails through the Communications Service.

    Requests carry a short-lived service-role JWT.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0):
        settings = get_settings()
        self.base_url = base_url or settings.COMMUNICATIONS_SERVICE_URL
        self.enabled = settings.NOTIFICATIONS_ENABLED
        self.timeout = timeout

    def _get_auth_headers(self) -> dict[str, str]:
        from libs.auth.dependencies import create_service_role_token

        token = create_service_role_token("email_client")
        return {"Authorization": f"Bearer {token}"}

    async def send_template(
        self,
        template_type: str,
        to_email: str,
        template_data: dict[str, Any],
    ) -> bool:
        """
        Send a templated email through the Communications Service.

        Template types used by the lessons service:
        - instructor_assignment: instructor assigned to a swimmer's lesson
        - instructor_unassignment: instructor removed from a swimmer's lesson
        - one_time_login: first-login credentials for a new instructor account

        Returns:
            True if the Communications Service accepted the email, False otherwise
        """
        if not self.enabled:
            logger.info(
                "Notifications disabled; skipping %s email to %s",
                template_type,
                to_email,
            )
            return False

        payload = {
            "template_type": template_type,
            "to_email": to_email,
            "template_data": template_data,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/email/template",
                    json=payload,
                    headers=self._get_auth_headers(),
                )
            if response.status_code == 200:
                return bool(response.json().get("success", False))
            logger.error(
                "Template email API returned %s: %s",
                response.status_code,
                response.text,
            )
            return False
        except httpx.HTTPError as e:
            logger.error("Failed to reach Communications Service: %s", e)
            return False


_email_client: Optional[EmailClient] = None


def get_email_client() -> EmailClient:
    """Return the process-wide EmailClient."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
