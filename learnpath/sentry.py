import logging
from .config import get_settings

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """Initialize Sentry error tracking (production only)

    Only initializes if SENTRY_DSN is configured and environment is production.
    Returns True when Sentry was initialized.
    """
    settings = get_settings()

    if not settings.sentry_dsn:
        logger.debug("Sentry not configured (SENTRY_DSN not set)")
        return False

    if not settings.is_production:
        logger.debug(f"Sentry disabled in {settings.environment} mode")
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.starlette import StarletteIntegration
        from sentry_sdk.integrations.httpx import HttpxIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            integrations=[
                FastApiIntegration(),
                StarletteIntegration(),
                HttpxIntegration(),  # Breadcrumbs for YouTube API calls
                LoggingIntegration(
                    level=logging.INFO,
                    event_level=logging.ERROR,
                ),
            ],
            traces_sample_rate=0.1,
            environment=settings.environment,
        )

        logger.info("Sentry initialized")
        return True

    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {str(e)}")
        return False
