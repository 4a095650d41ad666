import logging
import re
import sys
from typing import Iterable

# Log domains: quiz flow, study content and videos, mastery store, http layer.
DOMAIN_QUIZ = "quiz"
DOMAIN_CONTENT = "content"
DOMAIN_PERSISTENCE = "persistence"
DOMAIN_HTTP = "http"

LOG_FORMAT = "%(asctime)s | %(levelname)s | [%(domain)s] | %(name)s | %(message)s"
REDACTED = "[REDACTED]"


def get_domain_logger(name: str, domain: str) -> logging.LoggerAdapter[logging.Logger]:
    """Logger whose records carry ``domain`` so output can be filtered per concern."""
    return logging.LoggerAdapter(logging.getLogger(name), {"domain": domain})


class DomainDefaultFilter(logging.Filter):
    """Third-party records have no domain; give them one so the format string works."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "domain"):
            record.domain = "app"  # type: ignore[attr-defined]
        return True


# Groq keys, Supabase anon/service JWTs, and header-style key/bearer pairs.
_SECRET_PATTERNS = (
    re.compile(r"(?i)(api[_-]?key\s*[=:]\s*)([^\s,;]+)"),
    re.compile(r"(?i)(authorization\s*[=:]\s*bearer\s+)([^\s,;]+)"),
    re.compile(r"(?i)(\bbearer\s+)([A-Za-z0-9._\-]{16,})"),
    re.compile(r"(gsk_)([A-Za-z0-9]+)"),
    re.compile(r"()(eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+(?:\.[A-Za-z0-9_\-]+)?)"),
)


def redact_secrets(message: str, known_secrets: Iterable[str] = ()) -> str:
    text = str(message or "")
    for secret in known_secrets:
        if secret and len(secret) >= 8:
            text = text.replace(secret, REDACTED)
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(rf"\1{REDACTED}", text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Rewrite the formatted message with keys and tokens masked."""

    def __init__(self, known_secrets: Iterable[str] = ()):
        super().__init__()
        self.known_secrets = tuple(s for s in known_secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_secrets(record.getMessage(), self.known_secrets)
        record.args = ()
        return True


class SuppressHealthCheckFilter(logging.Filter):
    """Drop successful ``GET /health`` lines from the uvicorn access log."""

    def filter(self, record: logging.LogRecord) -> bool:
        # uvicorn.access args: (client, method, path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) == 5:
            path, status = str(args[2]), args[4]
            return not (path.split("?", 1)[0] == "/health" and status == 200)
        return True


def configure_logging(level: str = "INFO", secrets: Iterable[str] = ()) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    domain_filter = DomainDefaultFilter()
    redaction_filter = SecretRedactionFilter(secrets)
    for handler in logging.getLogger().handlers:
        handler.addFilter(domain_filter)
        handler.addFilter(redaction_filter)
    # httpx logs every request URL at INFO.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").addFilter(SuppressHealthCheckFilter())
