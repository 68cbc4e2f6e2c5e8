import sentry_sdk

from hrms.core.config import Settings, get_settings


def configure_error_monitoring(settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.2)
    return True


def report_exception(exc: BaseException) -> None:
    """Forward a handled failure to Sentry; a no-op when Sentry is not initialized."""
    sentry_sdk.capture_exception(exc)
