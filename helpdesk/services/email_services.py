import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from ..core.config import get_settings
from ..models.types import MemberRole

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self):
        settings = get_settings()
        self.smtp_server = settings.MAIL_SERVER
        self.smtp_port = settings.MAIL_PORT
        self.username = settings.MAIL_USERNAME
        self.password = settings.MAIL_PASSWORD
        self.from_email = settings.MAIL_FROM

    @property
    def enabled(self) -> bool:
        return bool(self.smtp_server)

    def _send_email(self, to_email: str, subject: str, html_content: str) -> None:
        if not self.enabled:
            logger.info(f"Mail server not configured, skipping '{subject}' to {to_email}")
            return

        message = MIMEMultipart()
        message["From"] = self.from_email
        message["To"] = to_email
        message["Subject"] = subject

        html_part = MIMEText(html_content, "html")
        message.attach(html_part)

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except Exception:
            logger.exception(f"Error sending email to {to_email}")
            raise

    def send_role_update_email(self, to_email: str, team_name: str, new_role: MemberRole) -> None:
        html_content = f"""
                <h2>Your role in {team_name} has been updated</h2>
                <p>Your role is now <strong>{new_role.value}</strong>.</p>
                <p>This change affects what you can manage in the team.</p>
        """
        self._send_email(
            to_email=to_email,
            subject=f"Role update in {team_name}",
            html_content=html_content,
        )

    def send_member_removed_email(self, to_email: str, team_name: str) -> None:
        html_content = f"""
                <h2>Team membership ended</h2>
                <p>You are no longer a member of {team_name}.</p>
                <p>If you have questions, please contact the team owner.</p>
        """
        self._send_email(
            to_email=to_email,
            subject=f"Membership in {team_name} ended",
            html_content=html_content,
        )


email_service = EmailService()
