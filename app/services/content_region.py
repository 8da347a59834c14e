"""Main-content region selection."""

import logging
from typing import Literal, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from app.models.normalizer_config import NormalizerConfig

logger = logging.getLogger(__name__)

RegionStrategy = Literal["marker", "selector", "wrapper", "densest", "body", "document"]

# Containers scanned by the "densest content" fallback
_BLOCK_CONTAINERS = ("div", "section")


def _text_length(tag: Tag) -> int:
    return len(tag.get_text())


def _first_match(soup: BeautifulSoup, selectors) -> Optional[Tag]:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None:
            return node
    return None


def _densest_container(soup: BeautifulSoup) -> Optional[Tag]:
    """Return the block container with the most text; the earliest one wins ties."""
    best: Optional[Tag] = None
    best_length = 0
    for node in soup.find_all(_BLOCK_CONTAINERS):
        length = _text_length(node)
        if length > best_length:
            best, best_length = node, length
    return best


def find_main_content(
    soup: BeautifulSoup, config: NormalizerConfig
) -> Tuple[Optional[Tag], Optional[RegionStrategy]]:
    """Return the most likely main-content element and the rule that picked it.

    Order:
    1. the explicit content marker element,
    2. the first matching main-content selector,
    3. the first matching wrapper selector,
    4. the block container holding the most text,
    5. ``<body>``, then the document itself.

    Returns ``(None, None)`` only for an empty tree.
    """
    if config.content_marker:
        node = soup.select_one(config.content_marker)
        if node is not None:
            return node, "marker"

    node = _first_match(soup, config.main_content_selectors)
    if node is not None:
        return node, "selector"

    node = _first_match(soup, config.wrapper_selectors)
    if node is not None:
        return node, "wrapper"

    node = _densest_container(soup)
    if node is not None:
        return node, "densest"

    if soup.body is not None:
        return soup.body, "body"
    if soup.contents:
        return soup, "document"
    return None, None
