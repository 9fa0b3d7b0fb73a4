"""
Outbound transactional email through the Resend HTTP API.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

APP_NAME = "Friend Focus"
RESEND_EMAILS_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT = 15  # seconds

_RESET_TEMPLATE = """\
<div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 480px; margin: 0 auto; padding: 40px 20px;">
  <h2 style="margin: 0 0 16px;">{app_name}</h2>
  <p>We received a request to reset your password. Click the button below to choose a new one:</p>
  <a href="{url}" style="display: inline-block; background: #18181b; color: #fff; padding: 12px 24px; border-radius: 6px; text-decoration: none; margin: 16px 0;">Reset Password</a>
  <p style="color: #71717a; font-size: 14px;">If you didn't request this, you can safely ignore this email. The link expires in 1 hour.</p>
  <p style="color: #71717a; font-size: 14px;">If the button doesn't work, copy and paste this URL into your browser:</p>
  <p style="color: #71717a; font-size: 14px; word-break: break-all;">{url}</p>
</div>
"""


@dataclass
class EmailSender:
    api_key: Optional[str]
    from_email: str

    def send_password_reset_email(self, to: str, reset_url: str) -> None:
        """
        Send a password reset link. Without an API key the link is logged
        instead, which is the expected behaviour in development.
        """
        if not self.api_key:
            logger.info("Password reset for %s: %s", to, reset_url)
            return

        response = requests.post(
            RESEND_EMAILS_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "from": self.from_email,
                "to": to,
                "subject": f"Reset your {APP_NAME} password",
                "html": _RESET_TEMPLATE.format(
                    app_name=APP_NAME, url=html.escape(reset_url, quote=True)
                ),
            },
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
