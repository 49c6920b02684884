"""Email service for sending transactional emails via AWS SES.

This service handles all account emails:
- Email verification links
- Password reset links
- Password changed notifications

Sending is best-effort: every method returns a bool and never raises, so a
failed delivery can never fail the signup, resend or reset request that
triggered it. The boto3 call is blocking and runs in a worker thread.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from src.core.config import get_settings

logger = structlog.get_logger(__name__)


def _render_html(title: str, paragraphs: list[str], action_url: str | None = None,
                 action_label: str | None = None) -> str:
    """Wrap content in the shared DebtRescue.AI email layout."""
    body = "\n".join(f"        <p>{paragraph}</p>" for paragraph in paragraphs)
    button = ""
    if action_url:
        button = f"""
        <div style="text-align: center; margin: 30px 0;">
            <a href="{action_url}"
               style="background-color: #2563EB; color: white; padding: 12px 30px;
                      text-decoration: none; border-radius: 5px; display: inline-block;">
                {action_label}
            </a>
        </div>
        <p>Or copy and paste this link into your browser:</p>
        <p style="word-break: break-all; color: #2563EB;">{action_url}</p>"""

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #2563EB;">{title}</h2>
{body}{button}
        <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">
        <p style="color: #999; font-size: 12px; text-align: center;">
            &copy; {datetime.now(timezone.utc).year} DebtRescue.AI. All rights reserved.
        </p>
    </div>
</body>
</html>
"""


class EmailService:
    """Service for sending emails via AWS SES.

    In development mode emails are logged instead of sent, so the service
    works locally without AWS credentials.

    Attributes:
        ses_client: Boto3 SES client (None in development mode)
        from_email: Configured sender email address
        from_name: Configured sender display name
        development_mode: Whether to log emails instead of sending
    """

    def __init__(self, development_mode: Optional[bool] = None):
        """Initialize email service with AWS SES configuration.

        Args:
            development_mode: If True, log emails instead of sending.
                Defaults to ``settings.email_development_mode``.
        """
        settings = get_settings()

        self.from_email = settings.ses_from_email
        self.from_name = settings.ses_from_name
        self.frontend_url = settings.frontend_url
        self.verification_expire_hours = settings.email_verification_expire_hours
        self.development_mode = (
            settings.email_development_mode if development_mode is None else development_mode
        )
        self.ses_client = None

        if not self.development_mode:
            try:
                self.ses_client = boto3.client("ses", region_name=settings.aws_region)
            except (BotoCoreError, ClientError) as e:
                logger.error("ses_client_init_failed", error=str(e))
                # Fall back to development mode if AWS configuration is invalid
                self.development_mode = True

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        """Send an email via AWS SES or log it in development mode.

        Args:
            to_email: Recipient email address
            subject: Email subject line
            html_body: HTML email body
            text_body: Plain text fallback (optional)

        Returns:
            True if email sent successfully (or logged in dev mode), False otherwise
        """
        if self.development_mode:
            logger.info(
                "email_not_sent_development_mode",
                to=to_email,
                subject=subject,
                text_body=text_body,
            )
            return True

        body_data: Dict[str, Any] = {"Html": {"Charset": "UTF-8", "Data": html_body}}
        if text_body:
            body_data["Text"] = {"Charset": "UTF-8", "Data": text_body}

        try:
            response = await asyncio.to_thread(
                self.ses_client.send_email,
                Source=f"{self.from_name} <{self.from_email}>",
                Destination={"ToAddresses": [to_email]},
                Message={
                    "Subject": {"Charset": "UTF-8", "Data": subject},
                    "Body": body_data,
                },
            )
        except ClientError as e:
            logger.error(
                "ses_send_failed",
                to=to_email,
                error_code=e.response["Error"]["Code"],
                error_message=e.response["Error"]["Message"],
            )
            return False
        except Exception as e:
            logger.error("email_send_failed", to=to_email, error=str(e))
            return False

        logger.info("email_sent", to=to_email, message_id=response.get("MessageId", "unknown"))
        return True

    async def send_verification_email(
        self, to_email: str, verification_token: str, user_name: Optional[str] = None
    ) -> bool:
        """Send the email verification link.

        Args:
            to_email: User's email address
            verification_token: Unique verification token
            user_name: User's name for personalization (optional)
        """
        verification_url = f"{self.frontend_url}/auth/verify-email?token={verification_token}"
        greeting = f"Hi {user_name}," if user_name else "Hello,"
        expiry = f"This link will expire in {self.verification_expire_hours} hours."

        html_body = _render_html(
            "Welcome to DebtRescue.AI!",
            [
                greeting,
                "Thanks for creating your account. Please verify your email address to get started.",
                expiry,
                "If you didn't create a DebtRescue.AI account, please ignore this email.",
            ],
            verification_url,
            "Verify Email Address",
        )
        text_body = (
            f"{greeting}\n\nVerify your email address:\n{verification_url}\n\n{expiry}\n"
        )

        return await self.send_email(
            to_email=to_email,
            subject="Verify your DebtRescue.AI Account",
            html_body=html_body,
            text_body=text_body,
        )

    async def send_password_reset_email(
        self, to_email: str, reset_token: str, user_name: Optional[str] = None
    ) -> bool:
        """Send the password reset link (valid for 1 hour)."""
        reset_url = f"{self.frontend_url}/auth/reset-password?token={reset_token}"
        greeting = f"Hi {user_name}," if user_name else "Hello,"

        html_body = _render_html(
            "Password Reset Request",
            [
                greeting,
                "We received a request to reset the password for your DebtRescue.AI account.",
                "This link will expire in 1 hour.",
                "If you didn't request a password reset, you can safely ignore this email.",
            ],
            reset_url,
            "Reset Password",
        )
        text_body = f"{greeting}\n\nReset your password:\n{reset_url}\n\nThis link will expire in 1 hour.\n"

        return await self.send_email(
            to_email=to_email,
            subject="Password Reset Request - DebtRescue.AI",
            html_body=html_body,
            text_body=text_body,
        )

    async def send_password_changed_notification(
        self, to_email: str, user_name: Optional[str] = None
    ) -> bool:
        """Tell the user their password was changed."""
        greeting = f"Hi {user_name}," if user_name else "Hello,"
        html_body = _render_html(
            "Your password was changed",
            [
                greeting,
                "The password for your DebtRescue.AI account was just changed and all devices were signed out.",
                "If you didn't make this change, reset your password immediately and contact support.",
            ],
        )
        text_body = f"{greeting}\n\nThe password for your DebtRescue.AI account was just changed.\n"

        return await self.send_email(
            to_email=to_email,
            subject="Your DebtRescue.AI password was changed",
            html_body=html_body,
            text_body=text_body,
        )
