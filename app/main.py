"""
HTTP entry point for Currency Clarity.

Run with:
    python -m app.main
or:
    uvicorn app.main:app --reload

Storage, heartbeat and log level all come from the environment (.env);
see currency_clarity.config.settings.
"""

import structlog
import uvicorn

from currency_clarity.api import create_app
from currency_clarity.audit import configure_logging
from currency_clarity.config import get_settings, validate_all_settings


settings = get_settings()
configure_logging(settings.app.log_level)

app = create_app()
logger = structlog.get_logger(__name__)


def main() -> None:
    checks = validate_all_settings()
    for name, ok in checks.items():
        if ok is False:
            logger.warning("configuration_problem", section=name, error=checks.get(f"{name}_error"))

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.app.debug_mode,
    )


if __name__ == "__main__":
    main()
