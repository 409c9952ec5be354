"""Brevo transactional email sender.

Thin wrapper around httpx that posts template emails to the Brevo SMTP
API. Non-2xx responses and transport errors raise CollaboratorError so
callers can log them uniformly.
"""

import logging
from typing import Any

import httpx

from src.errors import CollaboratorError

logger = logging.getLogger(__name__)

BREVO_API_BASE_URL = "https://api.brevo.com/v3"


class BrevoEmailSender:
    """NotificationSender implementation backed by the Brevo HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender_email: str,
        sender_name: str = "BoxCycle",
        base_url: str = BREVO_API_BASE_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the sender.

        Args:
            api_key: Brevo API key (sent as the api-key header).
            sender_email: Verified sender address.
            sender_name: Display name of the sender.
            base_url: Brevo API base URL.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._api_key = api_key
        self._sender = {"email": sender_email, "name": sender_name}
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    async def send_template(
        self,
        to_email: str,
        template_id: int,
        params: dict[str, Any],
        tags: list[str] | None = None,
    ) -> None:
        """Send one template email.

        Raises:
            CollaboratorError: The API rejected the request or was unreachable.
        """
        payload: dict[str, Any] = {
            "sender": self._sender,
            "to": [{"email": to_email}],
            "templateId": template_id,
            "params": params,
        }
        if tags:
            payload["tags"] = tags

        headers = {
            "api-key": self._api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post("/smtp/email", json=payload, headers=headers)
        except httpx.RequestError as e:
            raise CollaboratorError(
                f"Brevo request failed: {e}", code="E-3003"
            ) from e

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("message", resp.text)
            except ValueError:
                detail = resp.text
            raise CollaboratorError(
                f"Brevo rejected email (HTTP {resp.status_code}): {detail}",
                code="E-3003",
            )

        logger.debug("Template %d sent to %s", template_id, to_email)
