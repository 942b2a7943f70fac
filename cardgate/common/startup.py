"""Startup logging of the effective gateway settings, with secrets masked."""

from cardgate.common.config import CommonSettings
from cardgate.common.logging import logger

_SECRET_MARKERS = ("key", "secret", "dsn", "password", "token")


def redacted_settings(settings: CommonSettings) -> dict[str, object]:
    """Settings as a dict; secret-like fields show only whether they are set."""

    values: dict[str, object] = {}
    for name, value in settings.model_dump().items():
        if any(marker in name for marker in _SECRET_MARKERS):
            values[name] = "<set>" if value else "<unset>"
        else:
            values[name] = value
    return values


def log_startup_config(settings: CommonSettings) -> None:
    mode = "test" if settings.testmode else "live"
    logger.info("startup mode=%s config=%s", mode, redacted_settings(settings))
