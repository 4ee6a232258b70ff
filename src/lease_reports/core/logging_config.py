import logging
import sys

from .config import LOG_LEVEL, LOG_NAMESPACES


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True  # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)


def configure_logging() -> logging.Logger:
    """
    Attaches a stdout handler to the application's root logger.

    Modules use logging.getLogger(__name__), which yields loggers such as
    "lease_reports.features.reports.service" that inherit the level set here.
    Calling this more than once does not add duplicate handlers.
    """
    app_logger = logging.getLogger("lease_reports")
    app_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    if console_handler in app_logger.handlers:
        return app_logger

    # Only records from these namespaces reach the console when LOG_NAMESPACES is set
    if LOG_NAMESPACES:
        console_handler.addFilter(NamespaceFilter(LOG_NAMESPACES))

    app_logger.addHandler(console_handler)
    return app_logger
