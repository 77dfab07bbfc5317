import logging
import re
from typing import Optional

import structlog

SENSITIVE_KEYS = {"password", "password_hash", "token", "access_token", "cookie", "set-cookie", "authorization"}

_JWT_PATTERN = re.compile(r'eyJ[0-9A-Za-z_-]+\.[0-9A-Za-z_-]+\.[0-9A-Za-z_-]+')
_COOKIE_PATTERN = re.compile(r'(token=)[^;\s]+')


# Redaction processor to scrub credentials from any values in the event dict
def redact_sensitive(logger, method_name, event_dict):
    def scrub(v):
        if isinstance(v, str):
            v = _COOKIE_PATTERN.sub(r'\1REDACTED', v)
            return _JWT_PATTERN.sub('REDACTED', v)
        if isinstance(v, list):
            return [scrub(x) for x in v]
        if isinstance(v, dict):
            return {
                k: "REDACTED" if str(k).lower() in SENSITIVE_KEYS else scrub(vv)
                for k, vv in v.items()
            }
        return v

    for k, v in list(event_dict.items()):
        event_dict[k] = "REDACTED" if k.lower() in SENSITIVE_KEYS else scrub(v)
    return event_dict


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Route structlog through stdlib logging with JSON output"""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(message)s',  # structlog handles formatting
        handlers=handlers,
    )
