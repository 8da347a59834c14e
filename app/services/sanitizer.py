import logging
from typing import Iterable

from bs4 import BeautifulSoup, Comment

logger = logging.getLogger(__name__)

# Tags whose entire subtree is removed whatever the exclude list says
# (scripting, styling, embedded/binary content).
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "object",
    "embed",
    "applet",
    "link",
    "meta",
    # Vector / canvas graphics produce raw coordinate/path noise in plain text
    "svg",
    "canvas",
    # Template elements may contain raw JS template markup
    "template",
}

# Document roots survive even when a broad exclude selector matches them
# (e.g. ``[class*="modal"]`` against ``<body class="modal-open">``).
_PROTECTED_TAGS = {"html", "head", "body"}


def parse_html(html: str) -> BeautifulSoup:
    """Parse *html* with the lxml tree builder.

    Characters lxml cannot encode (lone surrogates from a JSON ``\\ud800``
    escape, for instance) become ``?`` instead of failing the parse.
    """
    html = html.encode("utf-8", errors="replace").decode("utf-8")
    return BeautifulSoup(html, "lxml")


def remove_excluded(soup: BeautifulSoup, selectors: Iterable[str]) -> int:
    """Decompose every element matching one of *selectors*, wherever it sits.

    Returns the number of elements removed.
    """
    removed = 0
    for selector in selectors:
        for tag in soup.select(selector):
            # An ancestor matched by an earlier selector already took this one with it
            if tag.decomposed or tag.name in _PROTECTED_TAGS:
                continue
            tag.decompose()
            removed += 1
    return removed


def sanitize(html: str, exclude_selectors: Iterable[str] = ()) -> BeautifulSoup:
    """Remove noise elements from *html* and return the cleaned BeautifulSoup tree."""
    soup = parse_html(html)

    # Remove tags that should never appear in clean output
    for tag in soup.find_all(_REMOVE_TAGS):
        if not tag.decomposed:
            tag.decompose()

    # Remove HTML comment nodes (may contain debugging info or conditional blocks)
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    removed = remove_excluded(soup, exclude_selectors)
    if removed:
        logger.debug("Sanitizer removed %d excluded elements", removed)

    return soup
