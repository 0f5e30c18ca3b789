"""Transactional email via the Resend API.

Thin adapter over the ``resend`` SDK so routes, scripts and probes share one
place that knows the API key and the payload shape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import resend

from paratygo.config import Settings, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes


class Mailer:
    """Sends HTML email and lists sending domains through Resend."""

    def __init__(self, api_key: str = "", cfg: Settings | None = None) -> None:
        cfg = cfg or settings
        self.api_key = api_key or cfg.resend_api_key
        self.default_from = cfg.email_from
        self.default_to = cfg.email_to

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _authorize(self) -> None:
        resend.api_key = self.api_key

    def list_domains(self) -> list[dict[str, Any]]:
        """GET /domains — also the cheapest way to validate the API key."""
        self._authorize()
        resp = resend.Domains.list()
        data = resp.get("data") if isinstance(resp, dict) else None
        return list(data or [])

    def send(
        self,
        subject: str,
        html: str,
        to: str | list[str] = "",
        sender: str = "",
        attachments: list[Attachment] | None = None,
    ) -> str:
        """Send one message; returns the Resend message id."""
        self._authorize()
        params: dict[str, Any] = {
            "from": sender or self.default_from,
            "to": to or self.default_to,
            "subject": subject,
            "html": html,
        }
        if attachments:
            params["attachments"] = [
                {"filename": a.filename, "content": list(a.content)} for a in attachments
            ]
        logger.info(
            "Sending email to=%s subject=%r attachments=%d",
            params["to"], subject, len(attachments or []),
        )
        resp = resend.Emails.send(params)
        return str(resp.get("id", "")) if isinstance(resp, dict) else str(getattr(resp, "id", ""))
