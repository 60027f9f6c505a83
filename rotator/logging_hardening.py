"""Logging setup and redaction.

This module keeps client secret material out of logs. Graph returns new
secrets as `secretText`; the store and the domain models call it `value` /
`secret_value`.
"""
import logging
import re
import sys

SECRET_PATTERNS = [
    (re.compile(r'("secretText":\s*")[^"]+(")'), r'\1[REDACTED]\2'),
    (re.compile(r'("secret_value":\s*")[^"]+(")'), r'\1[REDACTED]\2'),
    (re.compile(r'("value":\s*")[^"]+(")'), r'\1[REDACTED]\2'),
    # Keyword-based assignments (pydantic reprs, f-strings)
    (re.compile(r"(secret_value=)'[^']*'"), r"\1'[REDACTED]'"),
    (re.compile(r"(secretText=)\S+"), r"\1[REDACTED]"),
]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def redact(text: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Filter that redacts secret-like patterns from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)

        return True


def configure_logging(level: str = "INFO") -> None:
    """Install a stdout handler (once) carrying the redaction filter."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for h in root_logger.handlers:
        if getattr(h, "_rotator_handler", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    # On the handler, so records from every logger are filtered.
    handler.addFilter(SecretRedactionFilter())
    handler._rotator_handler = True
    root_logger.addHandler(handler)

    # Chatty SDK loggers
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
