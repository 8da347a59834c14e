"""HTML → markdown normalisation: boilerplate removal, region selection, semantic walk."""

import logging
import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin

from bs4 import NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

from app.models.normalizer_config import DEFAULT_CONFIG, NormalizerConfig
from app.services.code_noise import is_code_noise, strip_code_noise
from app.services.content_region import find_main_content
from app.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

_HEADINGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
_LISTS = ["ul", "ol"]

_WHITESPACE_RE = re.compile(r"\s+")
# Tag-shaped fragments left in text nodes (escaped markup, broken attributes)
_STRAY_TAG_RE = re.compile(r"</?[a-zA-Z][a-zA-Z0-9-]*(?:\s[^<>]*)?/?>")
# A "<" that would open a tag once the markdown is rendered as HTML
_TAG_OPENER_RE = re.compile(r"<(?=[a-zA-Z/!?])")
_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_LANG_CLASS_RE = re.compile(r"^(?:language|lang)-([\w+#.-]+)$")

# Elements whose boundaries separate words in the flattened text
_BREAKING_TAGS = {
    "br", "hr", "p", "div", "section", "article", "li", "ul", "ol", "dl", "dt", "dd",
    "blockquote", "pre", "table", "tr", "td", "th", "figure", "figcaption",
    "h1", "h2", "h3", "h4", "h5", "h6",
}


def clean_text(text: str) -> str:
    """Strip code noise and stray tags from *text*, collapse whitespace, trim."""
    text = strip_code_noise(text)
    text = _STRAY_TAG_RE.sub(" ", text)
    text = escape_tag_openers(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def escape_tag_openers(text: str) -> str:
    """Replace every tag-opening ``<`` in *text* with ``&lt;``."""
    return _TAG_OPENER_RE.sub("&lt;", text)


def flatten_text(node: Tag, skip: Iterable[str] = ()) -> str:
    """Text of *node* with a space at block and ``<br>`` boundaries.

    Subtrees rooted at a tag named in *skip* are left out.
    """
    parts: List[str] = []
    for child in node.children:
        if isinstance(child, Tag):
            if child.name in skip:
                continue
            if child.name in _BREAKING_TAGS:
                parts.extend((" ", flatten_text(child, skip), " "))
            else:
                parts.append(flatten_text(child, skip))
        elif isinstance(child, NavigableString):
            parts.append(str(child))
    return "".join(parts)


def collapse_blank_lines(markdown: str) -> str:
    """Final pass: trailing whitespace off, at most one blank line in a row, trimmed."""
    markdown = _TRAILING_WHITESPACE_RE.sub("", markdown)
    markdown = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", markdown)
    return markdown.strip()


def _code_language(tag: Tag) -> str:
    """Return a fence language hint from a ``language-*``/``lang-*`` class, if any."""
    candidates = [tag]
    code = tag.find("code") if tag.name == "pre" else None
    if isinstance(code, Tag):
        candidates.append(code)
    for node in candidates:
        for cls in node.get("class", []):
            match = _LANG_CLASS_RE.match(cls)
            if match:
                return match.group(1)
    return ""


class _MarkdownWriter:
    """Walks one content region and collects markdown blocks in document order."""

    def __init__(self, semantic_tags: List[str], base_url: Optional[str]):
        self.semantic_tags = set(semantic_tags)
        self.base_url = base_url
        self.blocks: List[str] = []

    def walk(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, Tag):
                self._visit(child)

    def _visit(self, tag: Tag) -> None:
        name = tag.name
        if name not in self.semantic_tags:
            self.walk(tag)
            return

        if name in _HEADINGS:
            text = clean_text(flatten_text(tag))
            if text:
                self.blocks.append(f"{'#' * _HEADINGS[name]} {text}")
        elif name == "p":
            text = clean_text(flatten_text(tag))
            if text:
                self.blocks.append(text)
        elif name in _LISTS:
            lines = self._list_lines(tag, depth=0)
            if lines:
                self.blocks.append("\n".join(lines))
        elif name == "li":
            # A list item outside any list element
            text = clean_text(flatten_text(tag, skip=_LISTS))
            if text:
                self.blocks.append(f"- {text}")
        elif name == "blockquote":
            text = clean_text(flatten_text(tag))
            if text:
                self.blocks.append(f"> {text}")
        elif name in ("pre", "code"):
            self._code_block(tag)
            return
        elif name in ("img", "picture"):
            self._image(tag)
            return

        self._inline_images(tag)

    def _list_lines(self, list_tag: Tag, depth: int) -> List[str]:
        ordered = list_tag.name == "ol"
        indent = "  " * depth
        lines: List[str] = []
        number = 0
        for li in list_tag.find_all("li", recursive=False):
            text = clean_text(flatten_text(li, skip=_LISTS))
            if text:
                number += 1
                marker = f"{number}." if ordered else "-"
                lines.append(f"{indent}{marker} {text}")
            for nested in li.find_all(_LISTS, recursive=False):
                lines.extend(self._list_lines(nested, depth + 1))
        return lines

    def _code_block(self, tag: Tag) -> None:
        code = tag.get_text().strip("\n")
        if not code.strip():
            return
        if is_code_noise(code):
            logger.debug("Dropping <%s> block that looks like CSS/script noise", tag.name)
            return
        fence = "```"
        # A longer fence when the sample itself contains backtick fences
        while fence in code:
            fence += "`"
        # Markup samples stay readable but never render as live tags
        code = escape_tag_openers(code)
        self.blocks.append(f"{fence}{_code_language(tag)}\n{code}\n{fence}")

    def _inline_images(self, tag: Tag) -> None:
        """Emit images nested in an already emitted element, after its text."""
        for media in tag.find_all(["picture", "img"]):
            if media.name not in self.semantic_tags:
                continue
            # Already emitted through its <picture>
            in_picture = media.name == "img" and media.find_parent("picture") is not None
            if in_picture and "picture" in self.semantic_tags:
                continue
            self._image(media)

    def _image(self, tag: Tag) -> None:
        img = tag.find("img") if tag.name == "picture" else tag
        if not isinstance(img, Tag):
            return
        src = str(img.get("src") or img.get("data-src") or "").strip()
        if not src or src.lower().startswith("data:"):
            return
        if self.base_url:
            src = urljoin(self.base_url, src)
        src = _TAG_OPENER_RE.sub("%3C", src)
        alt = clean_text(str(img.get("alt") or ""))
        self.blocks.append(f"![{alt}]({src})")


def normalize(
    html: str,
    config: Optional[NormalizerConfig] = None,
    base_url: Optional[str] = None,
) -> str:
    """Reduce an HTML page to clean markdown-equivalent text.

    Boilerplate (exclude list, scripts, styles) is removed from the whole
    tree first, then the main content region is chosen and its semantic
    elements are emitted in document order.  Returns ``""`` for empty input,
    markup the parser rejects, or a page with no extractable content.

    Args:
        html: Raw HTML text.
        config: Selector lists and tag mapping; defaults to :data:`DEFAULT_CONFIG`.
        base_url: When given, relative image sources are resolved against it.
    """
    if not html or not html.strip():
        return ""

    config = config or DEFAULT_CONFIG

    try:
        soup = sanitize(html, config.exclude_selectors)
    except ParserRejectedMarkup as exc:
        logger.warning("Parser rejected markup, returning empty content: %s", exc)
        return ""

    region, strategy = find_main_content(soup, config)
    if region is None:
        return ""
    logger.debug("Main content region chosen by %s rule: <%s>", strategy, region.name)

    writer = _MarkdownWriter(config.semantic_tags, base_url)
    writer.walk(region)
    return collapse_blank_lines("\n\n".join(writer.blocks))
