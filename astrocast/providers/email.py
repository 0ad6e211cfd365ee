import logging
import smtplib
from email.message import EmailMessage
from typing import Mapping, Sequence

from astrocast.report.formatters import format_text
from astrocast.report.types import LocationReport, User
from .base import NotificationSender

logger = logging.getLogger(__name__)


def build_message(
    sender: str,
    user: User,
    reports: Sequence[LocationReport],
    images: Mapping[str, bytes],
) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"Your observation report ({len(reports)} location{'s' if len(reports) != 1 else ''})"
    msg["From"] = sender
    msg["To"] = f"{user.name} <{user.email}>"

    body = [f"Hello {user.name},", ""]
    body.extend(format_text(report) + "\n" for report in reports)
    msg.set_content("\n".join(body))

    for name, data in images.items():
        msg.add_attachment(data, maintype="image", subtype="png", filename=name)
    return msg


class SmtpNotificationSender(NotificationSender):
    def __init__(self, config):
        self.host = config.email_host
        self.port = config.email_port
        self.username = config.email_username
        self.password = config.email_password
        self.use_tls = config.email_use_tls
        self.sender = config.email_sender
        self.timeout_s = config.report_fetch_timeout_s

    def send(self, user: User, reports: Sequence[LocationReport], images: Mapping[str, bytes]) -> bool:
        msg = build_message(self.sender, user, reports, images)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout_s) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send report email to user %s: %s", user.id, e)
            return False
        logger.info("Sent %d report(s) to user %s", len(reports), user.id)
        return True


class LogNotificationSender(NotificationSender):
    """Development sender that only logs what would have been sent."""

    def __init__(self, config=None):
        self.sender = config.email_sender if config is not None else "astrocast@localhost"

    def send(self, user: User, reports: Sequence[LocationReport], images: Mapping[str, bytes]) -> bool:
        msg = build_message(self.sender, user, reports, images)
        logger.info(
            "Email to %s: %s (%d attachment(s))",
            msg["To"],
            msg["Subject"],
            len(images),
        )
        logger.debug("%s", msg.get_body(preferencelist=("plain",)).get_content())
        return True
