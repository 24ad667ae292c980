"""Page fetch + visible-text extraction for link verification.

Policy:
- One GET per URL, bounded by timeout, byte ceiling and redirect count.
- Anything that is not an HTML page comes back as an empty string.
- Failures never propagate; callers treat "" as "page has no evidence".
"""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_BYTES = 1_500_000
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_ENCODING = "utf-8"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124 Safari/537.36"
)

_NON_HTML_EXT = re.compile(
    r"\.(?:pdf|docx?|xlsx?|pptx?|csv|zip|rar|7z|gz|jpe?g|png|gif|webp|bmp|svg|mp4|mp3|wav|avi|mov)$",
    re.IGNORECASE,
)
_HTML_TYPES = ("text/html", "application/xhtml+xml")
_REDIRECT_CODES = (301, 302, 303, 307, 308)
_STRIP_TAGS = ["script", "style", "noscript", "nav", "footer", "svg"]
_CHARSET = re.compile(r"charset=[\"']?([^;\"'\s]+)", re.IGNORECASE)


@dataclass(frozen=True)
class PageFetchResult:
    text: str
    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.text)


_PRIVATE_NETS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(ip in net for net in _PRIVATE_NETS)


def validate_fetch_url(url: str) -> Optional[str]:
    """Return a reason string if `url` must not be requested, else None."""
    try:
        p = urlparse(url)
    except ValueError:
        return "invalid_url"
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    host = (p.hostname or "").strip().lower()
    if not host:
        return "missing_host"
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    if _is_private_ip(host):
        return "blocked_private_ip"
    if _NON_HTML_EXT.search(p.path or ""):
        return "non_html_extension"
    return None


def charset_from_content_type(content_type: str) -> str:
    m = _CHARSET.search(content_type or "")
    return m.group(1).strip().lower() if m else DEFAULT_ENCODING


def decode_body(content: bytes, charset: str) -> str:
    try:
        return content.decode(charset or DEFAULT_ENCODING, errors="replace")
    except LookupError:
        # Unknown codec name in the header.
        return content.decode(DEFAULT_ENCODING, errors="replace")


def html_to_text(markup: str) -> str:
    """Visible body text, one block per line, whitespace collapsed."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(_STRIP_TAGS):
        tag.decompose()
    root = soup.body or soup
    lines = []
    for raw in root.get_text(separator="\n").splitlines():
        line = " ".join(raw.split())
        if line:
            lines.append(line)
    return "\n".join(lines)


class PageFetcher:
    """Fetch a URL and return its visible text ("" on any failure)."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.max_redirects = max_redirects
        self._session = session

    def _new_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"User-Agent": USER_AGENT, "Accept": "text/html,application/xhtml+xml"})
        return s

    def __call__(self, url: str) -> str:
        return self.fetch(url)

    def fetch(self, url: str) -> str:
        res = self.fetch_result(url)
        if not res.ok:
            logger.debug("fetch %s -> %s (%s)", url, res.status, res.error)
        return res.text

    def fetch_result(self, url: str) -> PageFetchResult:
        url = (url or "").strip()
        if not url:
            return PageFetchResult(text="", status="error", error="empty_url")
        err = validate_fetch_url(url)
        if err:
            return PageFetchResult(text="", status="skipped", error=err)
        try:
            return self._download(url)
        except Exception as e:
            return PageFetchResult(text="", status="error", error=f"{type(e).__name__}: {e}")

    def _download(self, url: str) -> PageFetchResult:
        # Sessions are not shared between worker threads.
        session = self._session or self._new_session()
        try:
            target = url
            for _ in range(self.max_redirects + 1):
                resp = session.get(
                    target,
                    timeout=(min(5.0, self.timeout), self.timeout),
                    allow_redirects=False,
                    stream=True,
                )
                try:
                    location = resp.headers.get("Location") if resp.status_code in _REDIRECT_CODES else None
                    if not location:
                        return self._read_response(resp)
                finally:
                    resp.close()
                # Every hop passes the same gate as the original URL.
                target = urljoin(target, location)
                err = validate_fetch_url(target)
                if err:
                    return PageFetchResult(text="", status="skipped", error=f"redirect_{err}")
            return PageFetchResult(text="", status="error", error="too_many_redirects")
        finally:
            if self._session is None:
                session.close()

    def _read_response(self, resp) -> PageFetchResult:
        if resp.status_code >= 400:
            return PageFetchResult(text="", status=f"http_{resp.status_code}", error=f"http_{resp.status_code}")
        content_type = (resp.headers.get("Content-Type") or "").lower()
        if not any(t in content_type for t in _HTML_TYPES):
            return PageFetchResult(text="", status="non_html", error=content_type or "missing_content_type")

        declared = resp.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            return PageFetchResult(text="", status="too_large", error="too_large")
        # Stop reading once max_bytes is exceeded.
        content = b""
        for chunk in resp.iter_content(chunk_size=64 * 1024):
            if not chunk:
                continue
            content += chunk
            if len(content) > self.max_bytes:
                return PageFetchResult(text="", status="too_large", error="too_large")

        markup = decode_body(content, charset_from_content_type(content_type))
        if not markup.strip():
            return PageFetchResult(text="", status="empty", error="empty_html")
        text = html_to_text(markup)
        if not text:
            return PageFetchResult(text="", status="no_text", error="no_text")
        return PageFetchResult(text=text, status="ok")
