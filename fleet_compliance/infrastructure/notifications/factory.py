"""
Notifier wiring from Settings.
"""

import logging

from fleet_compliance.config.settings import Settings, get_settings
from fleet_compliance.core.interfaces.notifier import Channel, INotifier
from fleet_compliance.core.use_cases.dispatch_notification import NotificationDispatcher
from fleet_compliance.infrastructure.notifications.email_notifier import SmtpEmailNotifier
from fleet_compliance.infrastructure.notifications.log_notifier import LoggingNotifier
from fleet_compliance.infrastructure.notifications.sms_notifier import HttpSmsNotifier

logger = logging.getLogger(__name__)


def build_notifiers(settings: Settings | None = None) -> list[INotifier]:
    """
    Email and SMS notifiers for the configured providers.

    A channel whose provider is not configured is left out, so dispatches
    on it are reported as failures instead of silently dropped.
    """
    settings = settings or get_settings()
    if settings.notifications_dry_run:
        logger.warning("Notifications in dry-run mode, nothing will be delivered")
        return [LoggingNotifier(Channel.EMAIL), LoggingNotifier(Channel.SMS)]

    notifiers: list[INotifier] = []
    if settings.smtp_host:
        notifiers.append(SmtpEmailNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            sender_name=settings.sender_name,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        ))
    else:
        logger.warning("SMTP_HOST not set, email notifications disabled")

    if settings.sms_api_token:
        notifiers.append(HttpSmsNotifier(
            api_url=settings.sms_api_url,
            api_token=settings.sms_api_token,
            sender_id=settings.sms_sender_id,
            country_code=settings.sms_default_country_code,
            timeout=settings.sms_timeout_seconds,
        ))
    else:
        logger.warning("SMS_API_TOKEN not set, SMS notifications disabled")

    return notifiers


def build_dispatcher(settings: Settings | None = None) -> NotificationDispatcher:
    return NotificationDispatcher(build_notifiers(settings))
