# Standard library imports
import logging

# Third-party imports
import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

# Local application imports
from civicdesk.settings import settings


def _setup_sentry_logging() -> None:
    """
    Send ERROR log records to Sentry as events (WARNING and above become
    breadcrumbs). Only active in production with a configured DSN.
    """
    if settings.ENVIRONMENT == "production" and settings.SENTRY_DSN:
        sentry_logging = LoggingIntegration(
            level=logging.WARNING,
            event_level=logging.ERROR,
        )

        if not sentry_sdk.get_client().is_active():
            sentry_sdk.init(
                dsn=settings.SENTRY_DSN,
                integrations=[sentry_logging],
                environment=settings.ENVIRONMENT,
                traces_sample_rate=1.0,
            )


# Call setup once at module import time
_setup_sentry_logging()
