# tests/test_config.py

import pytest

from task_common.config import DEFAULT_FROM_EMAIL, Settings
from task_common.errors import ValidationError


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})
    assert settings.tasks_table == 'Task'
    assert settings.profiles_table == 'UserProfile'
    assert settings.from_email == DEFAULT_FROM_EMAIL
    assert settings.notification_channel == 'ses'
    assert settings.reminder_window_days == 3
    assert settings.upload_url_expires == 300


def test_reads_amplify_variables():
    settings = Settings.from_env({
        'API_STUDENTTASKMANAGER_TASKTABLE_NAME': 'Task-abc-dev',
        'API_STUDENTTASKMANAGER_USERPROFILETABLE_NAME': 'UserProfile-abc-dev',
        'SES_FROM_EMAIL': 'tasks@uni.example',
        'NOTIFICATION_CHANNEL': 'SMTP',
        'SMTP_PORT': '2525',
        'AWS_MAX_ATTEMPTS': '5',
        'REMINDER_WINDOW_DAYS': '1',
        'LOG_LEVEL': 'debug',
    })
    assert settings.tasks_table == 'Task-abc-dev'
    assert settings.profiles_table == 'UserProfile-abc-dev'
    assert settings.from_email == 'tasks@uni.example'
    assert settings.notification_channel == 'smtp'
    assert settings.smtp_port == 2525
    assert settings.aws_max_attempts == 5
    assert settings.reminder_window_days == 1
    assert settings.log_level == 'DEBUG'


def test_empty_from_email_falls_back_to_default():
    assert Settings.from_env({'SES_FROM_EMAIL': ''}).from_email == DEFAULT_FROM_EMAIL


def test_non_numeric_setting_is_rejected():
    with pytest.raises(ValidationError, match='SMTP_PORT'):
        Settings.from_env({'SMTP_PORT': 'twenty-five'})


def test_boto_config_carries_timeouts_and_retries():
    config = Settings.from_env({'AWS_CONNECT_TIMEOUT': '2', 'AWS_READ_TIMEOUT': '4',
                                'AWS_MAX_ATTEMPTS': '6', 'AWS_REGION': 'eu-west-1'}).boto_config()
    assert config.connect_timeout == 2.0
    assert config.read_timeout == 4.0
    assert config.retries == {'max_attempts': 6, 'mode': 'standard'}
    assert config.region_name == 'eu-west-1'
