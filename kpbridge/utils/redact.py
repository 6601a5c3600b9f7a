"""Secret redaction utility — strip credentials from logged text."""

from __future__ import annotations

import re
from typing import Mapping

_SECRET_HEADERS = {"authorization", "x-api-key", "cookie", "proxy-authorization"}

_PATTERNS = [
    (re.compile(r"(?i)bearer\s+[A-Za-z0-9\-._~+/]+=*"), "Bearer [TOKEN]"),
    (re.compile(r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"), "[JWT]"),
    (re.compile(r"(?i)(client_secret|api_key|apikey)=[^&\s]+"), r"\1=[REDACTED]"),
]


def redact(text: str) -> str:
    for pattern, replacement in _PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def redact_headers(headers: Mapping[str, str]) -> str:
    """Render *headers* for a log line with credential headers masked."""
    return ", ".join(
        f"{k}=[REDACTED]" if k.lower() in _SECRET_HEADERS else f"{k}={redact(v)}"
        for k, v in headers.items()
    )
