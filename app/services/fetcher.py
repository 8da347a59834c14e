import ipaddress
import logging
import socket
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT = 10  # seconds
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}

# Sites serve their full article markup to browsers and a stripped shell to
# unknown clients, so requests look like a desktop Chrome.
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address."""
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = info[4][0].split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


def validate_url(url: str) -> None:
    """Raise ValueError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname.")

    if _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


def decode_body(body: bytes, charset: Optional[str]) -> str:
    """Decode *body* with the declared *charset*, or UTF-8 when it is missing or unknown."""
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        logger.debug("Unknown charset %r, decoding as UTF-8", charset)
        return body.decode("utf-8", errors="replace")


async def _read_capped(response: httpx.Response) -> bytes:
    """Read a streamed body, refusing anything larger than MAX_CONTENT_SIZE."""
    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_CONTENT_SIZE:
        raise RuntimeError("Response body exceeds the maximum allowed size.")

    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) > MAX_CONTENT_SIZE:
            raise RuntimeError("Response body exceeds the maximum allowed size.")
    return bytes(body)


async def fetch_url(url: str) -> str:
    """Fetch *url* and return the decoded HTML.

    Each redirect hop is checked with :func:`validate_url` before it is
    followed, so a public page cannot bounce the request to an internal
    host.

    Raises:
        ValueError: if the URL or a redirect target fails validation.
        httpx.HTTPError: on network or HTTP errors.
        RuntimeError: on an oversized body or too many redirects.
    """
    validate_url(url)

    async with httpx.AsyncClient(
        follow_redirects=False, timeout=TIMEOUT, headers=DEFAULT_HEADERS
    ) as client:
        target = url
        for hop in range(MAX_REDIRECTS + 1):
            async with client.stream("GET", target) as response:
                if not response.is_redirect:
                    response.raise_for_status()
                    body = await _read_capped(response)
                    return decode_body(body, response.charset_encoding)

                target = urljoin(target, response.headers.get("location", ""))
                validate_url(target)
                logger.debug("Redirect %d for %s -> %s", hop + 1, url, target)

    raise RuntimeError("Too many redirects.")
