import logging
import sys

from order_fulfillment.config import Settings


def configure_logging(settings: Settings) -> None:
    """
    Configure application-wide logging.
    - Logs to stdout
    - Includes environment and app_name on every line
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | "
            f"{settings.environment} | {settings.app_name} | "
            "%(message)s"
        ),
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    # SQL echo is controlled by database_echo, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
