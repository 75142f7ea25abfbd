# Configuration for the Lambda functions, read from the function environment
import os
from dataclasses import dataclass

from botocore.config import Config

from task_common.errors import ValidationError

DEFAULT_FROM_EMAIL = 'noreply@studenttaskmanager.com'


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings shared by every function.

    Table and bucket names come from the Amplify/CloudFormation generated
    environment variables; the timeout and retry knobs bound every call to
    DynamoDB, SES, S3 and SMTP.
    """
    tasks_table: str = 'Task'
    profiles_table: str = 'UserProfile'
    attachments_bucket: str = ''
    region: str = 'us-east-1'
    from_email: str = DEFAULT_FROM_EMAIL
    notification_channel: str = 'ses'
    gmail_user: str = ''
    gmail_password: str = ''
    smtp_server: str = 'smtp.gmail.com'
    smtp_port: int = 587
    aws_connect_timeout: float = 5.0
    aws_read_timeout: float = 10.0
    aws_max_attempts: int = 3
    smtp_timeout: float = 10.0
    smtp_max_attempts: int = 3
    smtp_backoff_seconds: float = 0.5
    reminder_window_days: int = 3
    upload_url_expires: int = 300
    download_url_expires: int = 3600
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ=None):
        """
        Build settings from environment variables.

        Args:
            environ (Mapping, optional): Variables to read, defaults to os.environ.

        Returns:
            Settings: Populated settings, defaults applied for unset variables.

        Raises:
            ValidationError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        return cls(
            tasks_table=env.get('API_STUDENTTASKMANAGER_TASKTABLE_NAME', cls.tasks_table),
            profiles_table=env.get('API_STUDENTTASKMANAGER_USERPROFILETABLE_NAME', cls.profiles_table),
            attachments_bucket=env.get('ATTACHMENTS_BUCKET', cls.attachments_bucket),
            region=env.get('AWS_REGION', cls.region),
            from_email=env.get('SES_FROM_EMAIL') or DEFAULT_FROM_EMAIL,
            notification_channel=env.get('NOTIFICATION_CHANNEL', cls.notification_channel).lower(),
            gmail_user=env.get('GMAIL_USER', ''),
            gmail_password=env.get('GMAIL_PASSWORD', ''),
            smtp_server=env.get('SMTP_SERVER', cls.smtp_server),
            smtp_port=_number(env, 'SMTP_PORT', cls.smtp_port, int),
            aws_connect_timeout=_number(env, 'AWS_CONNECT_TIMEOUT', cls.aws_connect_timeout, float),
            aws_read_timeout=_number(env, 'AWS_READ_TIMEOUT', cls.aws_read_timeout, float),
            aws_max_attempts=_number(env, 'AWS_MAX_ATTEMPTS', cls.aws_max_attempts, int),
            smtp_timeout=_number(env, 'SMTP_TIMEOUT', cls.smtp_timeout, float),
            smtp_max_attempts=_number(env, 'SMTP_MAX_ATTEMPTS', cls.smtp_max_attempts, int),
            smtp_backoff_seconds=_number(env, 'SMTP_BACKOFF_SECONDS', cls.smtp_backoff_seconds, float),
            reminder_window_days=_number(env, 'REMINDER_WINDOW_DAYS', cls.reminder_window_days, int),
            upload_url_expires=_number(env, 'UPLOAD_URL_EXPIRES', cls.upload_url_expires, int),
            download_url_expires=_number(env, 'DOWNLOAD_URL_EXPIRES', cls.download_url_expires, int),
            log_level=env.get('LOG_LEVEL', cls.log_level).upper(),
        )

    def boto_config(self):
        """botocore client config carrying the timeout and bounded retry policy."""
        return Config(
            region_name=self.region,
            connect_timeout=self.aws_connect_timeout,
            read_timeout=self.aws_read_timeout,
            retries={'max_attempts': self.aws_max_attempts, 'mode': 'standard'},
        )


def _number(env, name, default, cast):
    raw = env.get(name)
    if raw is None or raw == '':
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValidationError(f'{name} must be numeric, got {raw!r}')
