"""Named regular expressions for CSS/script artifacts that leak into page text.

Each pattern is applied as a text-level substitution when cleaning prose and
as a detector when deciding whether a ``<pre>``/``<code>`` block is a genuine
code sample or just a stylesheet that ended up in the content area.
"""

import re
from typing import NamedTuple, Pattern, Tuple


class NoisePattern(NamedTuple):
    name: str
    regex: Pattern[str]


CODE_NOISE_PATTERNS: Tuple[NoisePattern, ...] = (
    # .class-name { ... }
    NoisePattern("css_rule", re.compile(r"\.[a-zA-Z_-][\w-]*\s*\{[^}]*\}")),
    # --custom-property: value;
    NoisePattern("css_variable", re.compile(r"--[a-zA-Z_-][\w-]*\s*:\s*[^;]+;")),
    NoisePattern("style_block", re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)),
    NoisePattern("script_block", re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)),
)


def get_pattern(name: str) -> NoisePattern:
    """Return the registered pattern called *name*.

    Raises:
        KeyError: if no pattern has that name.
    """
    for pattern in CODE_NOISE_PATTERNS:
        if pattern.name == name:
            return pattern
    raise KeyError(name)


def is_code_noise(text: str) -> bool:
    """Return True when any registered pattern occurs in *text*."""
    return any(pattern.regex.search(text) for pattern in CODE_NOISE_PATTERNS)


def strip_code_noise(text: str) -> str:
    """Remove every occurrence of every registered pattern from *text*."""
    for pattern in CODE_NOISE_PATTERNS:
        text = pattern.regex.sub("", text)
    return text
