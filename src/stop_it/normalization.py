"""Utilities to normalize window titles and URLs into site domains."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

_BROWSER_SUFFIXES: tuple[str, ...] = (
    " - Google Chrome",
    " - Chromium",
    " - Mozilla Firefox",
    " — Mozilla Firefox",
    " - Firefox",
    " - Brave",
    " - Microsoft Edge",
    " - Vivaldi",
    " - Opera",
    " — Zen Browser",
)

_INTERNAL_PREFIXES: tuple[str, ...] = (
    "about:",
    "chrome:",
    "chrome-extension:",
    "chrome-search:",
    "devtools:",
    "edge:",
    "brave:",
    "opera:",
    "vivaldi:",
    "moz-extension:",
    "view-source:",
    "file:",
    "data:",
    "javascript:",
    "blob:",
)

_TITLE_TLDS: tuple[str, ...] = (
    "com", "org", "net", "io", "dev", "co", "ai", "app", "tech", "cloud", "edu",
    "gov", "mil", "int", "info", "biz", "name", "museum", "uk", "us", "ca", "au",
    "de", "fr", "it", "es", "nl", "jp", "cn", "in", "br",
)

_SERVICE_NAMES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("youtube",), "youtube.com"),
    (("reddit",), "reddit.com"),
    (("twitter",), "twitter.com"),
    (("github",), "github.com"),
    (("gitlab",), "gitlab.com"),
    (("stackoverflow", "stack overflow"), "stackoverflow.com"),
)

_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
_HOSTNAME_PATTERN = re.compile(rf"^(?:{_LABEL}\.)+[a-z]{{2,63}}$")
_EMBEDDED_URL_PATTERN = re.compile(r"https?://[^\s\"'<>]+", re.IGNORECASE)
_TITLE_DOMAIN_PATTERN = re.compile(
    rf"(?<![\w.@-])((?:{_LABEL}\.)+(?:{'|'.join(_TITLE_TLDS)}))(?=$|[/\s):,|]|\.(?:\s|$))"
)


def normalize_window_title(window_title: Optional[str]) -> Optional[str]:
    """Remove common browser suffixes to surface tab names."""
    if not window_title:
        return None
    normalized = window_title.strip()
    for suffix in _BROWSER_SUFFIXES:
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)].rstrip(" -—")
            break
    normalized = re.sub(r"\s{2,}", " ", normalized).strip()
    return normalized or None


def extract_domain(raw: Optional[str]) -> Optional[str]:
    """Return the normalized domain named by a URL, hostname or window title.

    The result is lowercased with a leading ``www.`` removed. Internal browser
    pages and strings without anything domain-like yield ``None``. Never raises.
    """
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    first_token = lowered.split(None, 1)[0]
    if _is_internal_page(first_token):
        return None
    if "://" in first_token:
        return _domain_from_url(text.split(None, 1)[0])
    if _HOSTNAME_PATTERN.match(lowered):
        return _strip_www(lowered)
    return _domain_from_title(text)


def _is_internal_page(token: str) -> bool:
    # "about:blank" is a page; "About:" followed by words is a title.
    return any(
        token.startswith(prefix) and len(token) > len(prefix)
        for prefix in _INTERNAL_PREFIXES
    )


def _domain_from_url(url: str) -> Optional[str]:
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not hostname:
        return None
    hostname = hostname.rstrip(".").lower()
    if not _HOSTNAME_PATTERN.match(hostname):
        return None
    return _strip_www(hostname)


def _domain_from_title(title: str) -> Optional[str]:
    cleaned = normalize_window_title(title)
    if cleaned is None:
        return None

    embedded = _EMBEDDED_URL_PATTERN.search(cleaned)
    if embedded:
        domain = _domain_from_url(embedded.group(0))
        if domain:
            return domain

    lowered = cleaned.lower()
    match = _TITLE_DOMAIN_PATTERN.search(lowered)
    if match:
        return _strip_www(match.group(1))

    for names, domain in _SERVICE_NAMES:
        if any(name in lowered for name in names):
            return domain
    return None


def _strip_www(hostname: str) -> Optional[str]:
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname if _HOSTNAME_PATTERN.match(hostname) else None
