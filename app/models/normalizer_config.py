from typing import List

import soupsieve
from pydantic import BaseModel, ConfigDict, Field, field_validator

SUPPORTED_SEMANTIC_TAGS = (
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "p",
    "ul",
    "ol",
    "li",
    "blockquote",
    "pre",
    "code",
    "picture",
    "img",
)

DEFAULT_MAIN_CONTENT_SELECTORS = (
    ".post_content",
    ".mx-3",
    ".xs\\:mx-4",
    "article",
    ".entry-content",
    ".post-content",
    ".article__content",
    ".main-content",
    # Reddit
    ".Post",
    ".PostContent",
    # Quora
    ".q-box",
    ".qu-contents",
)

DEFAULT_WRAPPER_SELECTORS = (
    'div[class*="post_content"]',
    'div[class*="mx-3"]',
    'div[class*="xs:mx-4"]',
    'div[class*="content"]',
    'div[class*="article"]',
    "main",
    '[role="main"]',
)

DEFAULT_EXCLUDE_SELECTORS = (
    # Reddit call-to-action furniture
    ".PostCTAWrapper",
    ".PostSubNavigation",
    ".PostCTAImage",
    ".PostCTAHeading",
    ".PostCTAContent",
    ".PostCTAButton",
    ".comments",
    ".sidebar",
    ".navigation",
    ".menu",
    ".footer",
    ".header",
    ".ad",
    ".ads",
    ".advertisement",
    ".popup",
    ".modal",
    '[class*="cta"]',
    '[class*="popup"]',
    '[class*="modal"]',
    "nav",
    "header",
    "footer",
    "aside",
)

DEFAULT_CONTENT_MARKER = "document_content"


class NormalizerConfig(BaseModel):
    """Selector lists and tag mapping that drive :func:`app.services.normalizer.normalize`.

    Priority is list order: the first selector that matches wins.  The
    densest-container fallback only runs when no selector matches at all.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    main_content_selectors: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MAIN_CONTENT_SELECTORS),
        alias="mainContentSelectors",
    )
    wrapper_selectors: List[str] = Field(
        default_factory=lambda: list(DEFAULT_WRAPPER_SELECTORS),
        alias="wrapperSelectors",
    )
    exclude_selectors: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_SELECTORS),
        alias="excludeSelectors",
    )
    semantic_tags: List[str] = Field(
        default_factory=lambda: list(SUPPORTED_SEMANTIC_TAGS),
        alias="semanticTags",
    )
    content_marker: str = Field(default=DEFAULT_CONTENT_MARKER, alias="contentMarker")

    @field_validator("main_content_selectors", "wrapper_selectors", "exclude_selectors")
    @classmethod
    def _check_selectors(cls, selectors: List[str]) -> List[str]:
        cleaned = [s.strip() for s in selectors if s and s.strip()]
        for selector in cleaned:
            try:
                soupsieve.compile(selector)
            except soupsieve.SelectorSyntaxError as exc:
                raise ValueError(f"Invalid CSS selector {selector!r}: {exc}") from exc
        return cleaned

    @field_validator("semantic_tags")
    @classmethod
    def _check_semantic_tags(cls, tags: List[str]) -> List[str]:
        normalised = [t.strip().lower() for t in tags if t and t.strip()]
        unknown = sorted(set(normalised) - set(SUPPORTED_SEMANTIC_TAGS))
        if unknown:
            raise ValueError(f"Unsupported semantic tags: {', '.join(unknown)}")
        return normalised

    @field_validator("content_marker")
    @classmethod
    def _check_content_marker(cls, marker: str) -> str:
        marker = marker.strip()
        if marker:
            try:
                soupsieve.compile(marker)
            except soupsieve.SelectorSyntaxError as exc:
                raise ValueError(f"Invalid content marker {marker!r}: {exc}") from exc
        return marker


DEFAULT_CONFIG = NormalizerConfig()
