from aguka.core.celery_app import celery_app
from aguka.core.config import settings
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import logging

logger = logging.getLogger(__name__)


def build_test_passed_message(email: str, full_name: str, score: float) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["Subject"] = "You passed your Aguka skills test"
    message["From"] = settings.mail_from
    message["To"] = email

    name = full_name or "there"
    text = (
        f"Hi {name},\n\n"
        f"Congratulations! You scored {score:.0f}% on your skills test and are now a verified talent.\n"
        "Employers can see your verified badge when you apply for jobs.\n\n"
        "The Aguka team"
    )
    html = (
        f"<p>Hi {name},</p>"
        f"<p>Congratulations! You scored <strong>{score:.0f}%</strong> on your skills test "
        "and are now a verified talent.</p>"
        "<p>Employers can see your verified badge when you apply for jobs.</p>"
        "<p>The Aguka team</p>"
    )
    message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))
    return message


def send_email(message: MIMEMultipart) -> bool:
    """Send through SMTP when configured, otherwise only log the message."""
    if not settings.smtp_host:
        logger.info(f"SMTP not configured, email to {message['To']} not sent: {message['Subject']}")
        return False

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
        server.starttls()
        if settings.smtp_user:
            server.login(settings.smtp_user, settings.smtp_password or "")
        server.send_message(message)
    logger.info(f"Email sent to {message['To']}: {message['Subject']}")
    return True


@celery_app.task(bind=True, name="send_test_passed_email", max_retries=3)
def send_test_passed_email(self, email: str, full_name: str, score: float):
    """Tell a candidate they passed and became a verified talent."""
    try:
        sent = send_email(build_test_passed_message(email, full_name, score))
    except (smtplib.SMTPException, OSError) as exc:
        logger.error(f"Failed to send test-passed email to {email}: {exc}")
        raise self.retry(exc=exc)
    return {"email": email, "sent": sent}
