# Email delivery for reminders and reports, through SES or Gmail SMTP
import logging
import smtplib
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from task_common.errors import ValidationError

logger = logging.getLogger(__name__)


class SesDispatcher:
    """Sends HTML email through Amazon SES."""

    def __init__(self, client, source):
        self.client = client
        self.source = source

    @classmethod
    def from_settings(cls, settings):
        return cls(boto3.client('ses', config=settings.boto_config()), settings.from_email)

    def send(self, destination, subject, body_markup):
        """
        Send one HTML email.

        Args:
            destination (str): Recipient email address.
            subject (str): Subject line.
            body_markup (str): HTML body.

        Returns:
            bool: True if SES accepted the message, False otherwise.
        """
        try:
            self.client.send_email(
                Source=self.source,
                Destination={'ToAddresses': [destination]},
                Message={
                    'Subject': {'Data': subject},
                    'Body': {'Html': {'Data': body_markup}},
                },
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to send email to {destination}: {e}")
            return False
        logger.info(f"Notification sent to {destination}: {subject}")
        return True


class SmtpDispatcher:
    """
    Sends HTML email over SMTP with STARTTLS (Gmail by default).

    Each attempt uses `timeout`; failed attempts are retried up to
    `max_attempts` times, sleeping backoff * 2**n between them.
    """

    def __init__(self, user, password, server='smtp.gmail.com', port=587,
                 timeout=10.0, max_attempts=3, backoff=0.5, sleep=time.sleep):
        self.user = user
        self.password = password
        self.server = server
        self.port = port
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.sleep = sleep

    @classmethod
    def from_settings(cls, settings):
        return cls(
            settings.gmail_user,
            settings.gmail_password,
            server=settings.smtp_server,
            port=settings.smtp_port,
            timeout=settings.smtp_timeout,
            max_attempts=settings.smtp_max_attempts,
            backoff=settings.smtp_backoff_seconds,
        )

    def _message(self, destination, subject, body_markup):
        msg = MIMEMultipart()
        msg['From'] = self.user
        msg['To'] = destination
        msg['Subject'] = subject
        msg.attach(MIMEText(body_markup, 'html'))
        return msg

    def send(self, destination, subject, body_markup):
        msg = self._message(destination, subject, body_markup)
        for attempt in range(1, self.max_attempts + 1):
            try:
                with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                    server.starttls()
                    server.login(self.user, self.password)
                    server.sendmail(self.user, [destination], msg.as_string())
                logger.info(f"Notification sent to {destination}: {subject}")
                return True
            except (smtplib.SMTPException, OSError) as e:
                logger.warning(f"SMTP attempt {attempt}/{self.max_attempts} to {destination} failed: {e}")
                if attempt < self.max_attempts:
                    self.sleep(self.backoff * 2 ** (attempt - 1))
        logger.error(f"Failed to send email to {destination} after {self.max_attempts} attempts")
        return False


def build_dispatcher(settings):
    """Pick the dispatcher named by NOTIFICATION_CHANNEL."""
    if settings.notification_channel == 'ses':
        return SesDispatcher.from_settings(settings)
    if settings.notification_channel == 'smtp':
        return SmtpDispatcher.from_settings(settings)
    raise ValidationError(f'Unknown notification channel: {settings.notification_channel}')
