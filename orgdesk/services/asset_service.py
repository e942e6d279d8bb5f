"""
Branding image inlining.

Reports are loaded into the browser with ``set_content``, which has no base
URL, so relative logo/stamp paths would never resolve.  Before rendering,
branding images are fetched and embedded as ``data:`` URLs.  A failed fetch
is logged and the original URL is kept; a missing logo never fails a report.

Only URLs on the public base URL host (or an explicitly trusted host) are
fetched.  Branding can arrive in unauthenticated request bodies, so any other
host is left as-is and never requested by the server.
"""

import base64
import dataclasses
import logging
import mimetypes
from urllib.parse import urljoin, urlparse

import requests

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10  # seconds
_MAX_IMAGE_BYTES = 5 * 1024 * 1024


def resolve_asset_url(url: str | None, base_url: str | None) -> str | None:
    """Make ``url`` absolute against ``base_url``; data URLs pass through."""
    if not url or url.startswith("data:"):
        return url
    if urlparse(url).scheme in ("http", "https"):
        return url
    if not base_url:
        return url
    return urljoin(base_url.rstrip("/") + "/", url.lstrip("/"))


def is_trusted_asset_url(url: str, base_url: str | None, allowed_hosts=()) -> bool:
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return False
    trusted = {h.lower() for h in allowed_hosts if h}
    if base_url:
        trusted.add((urlparse(base_url).hostname or "").lower())
    return host in trusted


def _mime_type(resp, url: str) -> str:
    content_type = (resp.headers.get("Content-Type") or "").split(";")[0].strip()
    if content_type.startswith("image/"):
        return content_type
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    return guessed if guessed and guessed.startswith("image/") else "image/png"


def inline_image(
    url: str | None,
    *,
    base_url: str | None = None,
    session: requests.Session | None = None,
    timeout: int = _DEFAULT_TIMEOUT,
    allowed_hosts=(),
) -> str | None:
    """Return ``url`` as a ``data:image/...;base64,`` URL when it can be fetched."""
    absolute = resolve_asset_url(url, base_url)
    if not absolute or absolute.startswith("data:"):
        return absolute
    if urlparse(absolute).scheme not in ("http", "https"):
        return absolute
    if not is_trusted_asset_url(absolute, base_url, allowed_hosts):
        logger.info("Branding image not inlined, untrusted host url=%s", absolute)
        return absolute

    http = session or requests
    try:
        resp = http.get(absolute, timeout=timeout)
    except requests.Timeout:
        logger.warning("Branding image fetch timed out after %ss url=%s", timeout, absolute)
        return absolute
    except requests.RequestException as exc:
        logger.warning("Branding image fetch failed url=%s error=%s", absolute, str(exc)[:200])
        return absolute

    if not resp.ok or not resp.content:
        logger.warning("Branding image fetch returned status=%s url=%s", resp.status_code, absolute)
        return absolute
    if len(resp.content) > _MAX_IMAGE_BYTES:
        logger.warning("Branding image too large (%d bytes) url=%s", len(resp.content), absolute)
        return absolute

    encoded = base64.b64encode(resp.content).decode("ascii")
    return f"data:{_mime_type(resp, absolute)};base64,{encoded}"


def inline_branding_assets(branding, *, base_url=None, session=None, allowed_hosts=()):
    """Return a copy of ``branding`` with logo and stamp embedded."""
    kwargs = {"base_url": base_url, "session": session, "allowed_hosts": allowed_hosts}
    return dataclasses.replace(
        branding,
        logo_url=inline_image(branding.logo_url, **kwargs),
        stamp_url=inline_image(branding.stamp_url, **kwargs),
    )
