"""
Absolute link building for outbound email.
"""
from __future__ import annotations

import enum
from typing import Optional
from urllib.parse import urlencode, urlsplit, urlunsplit


class ForceSSL(enum.IntEnum):
    OFF = 0
    REDIRECT = 1
    ENTIRE_SITE = 2


class LinkBuilder:
    """Builds links relative to the configured site root.

    With ``ForceSSL.ENTIRE_SITE`` every link is forced to https. ``OFF`` and
    ``REDIRECT`` keep the scheme of the site URL and never downgrade an https
    site to plain http links.
    """

    def __init__(self, site_url: str, force_ssl: int = ForceSSL.OFF):
        parts = urlsplit(site_url)
        self.scheme = parts.scheme or "http"
        self.netloc = parts.netloc
        self.base_path = parts.path.rstrip("/")
        self.force_ssl = ForceSSL(force_ssl)

    def root(self) -> str:
        return urlunsplit((self.scheme, self.netloc, self.base_path + "/", "", ""))

    def link(self, path: str, params: Optional[dict] = None) -> str:
        scheme = "https" if self.force_ssl == ForceSSL.ENTIRE_SITE else self.scheme
        query = urlencode(params) if params else ""
        return urlunsplit((scheme, self.netloc, self.base_path + "/" + path.lstrip("/"), query, ""))
