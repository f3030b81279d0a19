import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)


class EmailService:
    """
    Transactional e-mail via SendGrid (invitations).
    Without an API key it logs the message instead of sending, so local
    development works without SendGrid.
    """

    def __init__(self, api_key: Optional[str], sender_email: Optional[str], product_name: str = "Catalog Pilot"):
        self.sendgrid_api_key = api_key
        self.sender_email = sender_email
        self.product_name = product_name

        self.enabled = bool(self.sendgrid_api_key and self.sender_email)
        if not self.enabled:
            logger.warning("email.disabled missing SENDGRID_API_KEY or MAIL_FROM; messages will only be logged")
        else:
            logger.info("email.ready sender=%s", self.sender_email)

    # ============================================================
    # Invitation e-mail (synchronous, runs in BackgroundTasks)
    # ============================================================
    def send_invitation_email(
        self,
        to_email: str,
        invitation_link: str,
        role: str,
        company_name: str,
        invited_by: str = "A teammate",
        ttl_days: int = 7,
    ) -> bool:
        """True when SendGrid accepted the message (or in mock mode). Failures are logged, never raised."""

        if not self.enabled:
            logger.info("email.mock to=%s link=%s role=%s company=%s", to_email, invitation_link, role, company_name)
            return True

        subject = f"You're invited to join {company_name} on {self.product_name}"

        html_content = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>Hello!</h2>
            <p><strong>{invited_by}</strong> has invited you to join
            <strong>{company_name}</strong> on <b>{self.product_name}</b> as
            <strong>{role.title()}</strong>.</p>

            <p style="text-align: center; margin: 20px 0;">
                <a href="{invitation_link}" style="
                    background-color: #2563EB;
                    color: white;
                    padding: 12px 28px;
                    text-decoration: none;
                    border-radius: 6px;
                    font-weight: bold;
                    display: inline-block;
                ">Accept Invitation</a>
            </p>

            <p>If the button doesn't work, copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #555;">{invitation_link}</p>

            <p><small>This invitation will expire in {ttl_days} days.</small></p>
        </div>
        """

        try:
            message = Mail(
                from_email=self.sender_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content,
            )
            sg = SendGridAPIClient(self.sendgrid_api_key)
            response = sg.send(message)
            logger.info("email.sent to=%s status=%s", to_email, response.status_code)
            return True
        except Exception as e:
            logger.exception("email.failed to=%s err=%s", to_email, e)
            return False
