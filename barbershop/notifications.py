# barbershop/notifications.py
"""
Appointment emails over SMTP.

Sending is best-effort: the booking is the source of truth, so every failure
is logged and reported as False instead of raised.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

from barbershop import config

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    def send(self, recipient: str, subject: str, body_text: str, body_html: Optional[str] = None) -> bool:
        ...


class SmtpEmailSender:
    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        from_address: Optional[str] = None,
    ):
        self.host = host or config.SMTP_HOST
        self.port = port or config.SMTP_PORT
        self.user = user or config.SMTP_USER
        self.password = password or config.SMTP_PASSWORD
        self.from_address = from_address or config.EMAIL_FROM

    def send(self, recipient: str, subject: str, body_text: str, body_html: Optional[str] = None) -> bool:
        if not self.host:
            logger.info("SMTP not configured, skipping email to %s", recipient)
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = recipient
        msg.attach(MIMEText(body_text, "plain"))
        # fall back to the text body when no HTML is given
        msg.attach(MIMEText(body_html or body_text, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.from_address, [recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", recipient, e)
            return False

        logger.info("Email sent to %s", recipient)
        return True


def appointment_confirmation(user_name: str, day: str, time: str, barber_name: str, service_name: str) -> dict:
    return {
        "subject": "Appointment confirmation - Barbershop",
        "text": (
            f"Hi {user_name}, your appointment is booked for {day} at {time} "
            f"with {barber_name} for {service_name}."
        ),
        "html": f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Appointment confirmation</h2>
  <p>Hi <strong>{user_name}</strong>,</p>
  <p>Your appointment is booked:</p>
  <div style="background: #f9f9f9; padding: 15px; border-radius: 5px; margin: 20px 0;">
    <p><strong>Date:</strong> {day}</p>
    <p><strong>Time:</strong> {time}</p>
    <p><strong>Barber:</strong> {barber_name}</p>
    <p><strong>Service:</strong> {service_name}</p>
  </div>
  <p style="color: #666; font-size: 12px;">Need to cancel or reschedule? Please let us know in advance.</p>
</div>
""",
    }


def appointment_cancelled(user_name: str, day: str, time: str) -> dict:
    return {
        "subject": "Appointment cancelled - Barbershop",
        "text": f"Hi {user_name}, your appointment on {day} at {time} has been cancelled.",
        "html": f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Appointment cancelled</h2>
  <p>Hi <strong>{user_name}</strong>,</p>
  <p>Your appointment on <strong>{day}</strong> at <strong>{time}</strong> has been cancelled.</p>
</div>
""",
    }


def notify(sender: Optional[NotificationSender], recipient: str, template: dict) -> bool:
    """Send a rendered template; never raises."""
    if sender is None:
        return False
    try:
        return bool(sender.send(recipient, template["subject"], template["text"], template["html"]))
    except Exception:
        logger.exception("Notification to %s failed (booking kept)", recipient)
        return False
