"""Logging configuration helpers."""

import logging

_CONTEXT_FIELDS = ("project_id", "file_name", "size", "edit")


class ContextFormatter(logging.Formatter):
    """Formatter that appends known ``extra`` fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{name}={getattr(record, name)}"
            for name in _CONTEXT_FIELDS
            if hasattr(record, name)
        )
        return f"{message} [{context}]" if context else message


def configure_logging(level: str = "INFO") -> None:
    """Configure the portal logger with a single stream handler."""
    logger = logging.getLogger("progress_portal")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
