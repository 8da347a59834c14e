"""Tests for app.services.normalizer.normalize."""

import re

from app.models.normalizer_config import NormalizerConfig
from app.services.normalizer import clean_text, collapse_blank_lines, normalize

_RAW_TAG_RE = re.compile(r"<[a-zA-Z/]")


def _article(body: str) -> str:
    return f"<html><body><article>{body}</article></body></html>"


class TestEndToEnd:
    def test_nav_and_script_removed_whitespace_collapsed(self):
        html = (
            "<html><body><nav>Menu</nav><article><h1>Hello</h1>"
            "<p>World  wide   web.</p><script>var x=1;</script></article></body></html>"
        )
        assert normalize(html) == "# Hello\n\nWorld wide web."

    def test_realistic_blog_page(self):
        html = """
        <html>
        <head><title>Post</title><style>.site { color: red; }</style></head>
        <body>
          <header><a href="/">Logo</a></header>
          <nav><ul><li>Home</li><li>About</li></ul></nav>
          <div class="entry-content">
            <h1>Release notes</h1>
            <p>The new   release   ships
               today.</p>
            <div class="PostCTAWrapper"><p>Subscribe now!</p></div>
            <h2>Changes</h2>
            <ol><li>Faster</li><li>Smaller</li></ol>
            <blockquote>Best release yet</blockquote>
          </div>
          <aside class="sidebar"><p>Related posts</p></aside>
          <footer>Copyright</footer>
        </body>
        </html>
        """
        assert normalize(html) == (
            "# Release notes\n\n"
            "The new release ships today.\n\n"
            "## Changes\n\n"
            "1. Faster\n2. Smaller\n\n"
            "> Best release yet"
        )


class TestEmptyResults:
    def test_empty_string(self):
        assert normalize("") == ""

    def test_whitespace_only(self):
        assert normalize("   \n\t ") == ""

    def test_only_excluded_elements(self):
        assert normalize("<nav>Menu items</nav><footer>Copyright 2024</footer>") == ""

    def test_empty_containers(self):
        assert normalize("<html><body><div><div></div></div></body></html>") == ""

    def test_only_script(self):
        assert normalize("<script>console.log('hi')</script>") == ""


class TestHeadings:
    def test_h2_prefix(self):
        assert normalize(_article("<h2>Title</h2>")).startswith("## Title")

    def test_all_levels(self):
        body = "".join(f"<h{n}>Level {n}</h{n}>" for n in range(1, 7))
        lines = [line for line in normalize(_article(body)).split("\n") if line]
        assert lines == [f"{'#' * n} Level {n}" for n in range(1, 7)]

    def test_empty_heading_skipped(self):
        assert normalize(_article("<h2>   </h2><p>Text</p>")) == "Text"

    def test_heading_whitespace_collapsed(self):
        assert normalize(_article("<h3>  Spaced \n  out </h3>")) == "### Spaced out"

    def test_image_inside_heading(self):
        html = _article("<h1>Title<img src='https://x/h.png' alt='H'></h1>")
        assert normalize(html) == "# Title\n\n![H](https://x/h.png)"


class TestParagraphs:
    def test_empty_paragraph_skipped(self):
        assert normalize(_article("<p>One</p><p> \n </p><p>Two</p>")) == "One\n\nTwo"

    def test_inline_markup_flattened(self):
        assert normalize(_article("<p>Call <code>foo()</code> <b>now</b></p>")) == "Call foo() now"

    def test_br_separates_words(self):
        assert normalize(_article("<p>line one<br>line two</p>")) == "line one line two"

    def test_inline_tags_do_not_split_words(self):
        assert normalize(_article("<p>wor<b>ld</b>, <a href='#'>link</a>.</p>")) == "world, link."

    def test_leaked_css_rule_removed(self):
        assert normalize(_article("<p>Hello .hero { margin: 0; } world</p>")) == "Hello world"

    def test_leaked_css_variable_removed(self):
        assert normalize(_article("<p>Theme --main-color: #fff; applied</p>")) == "Theme applied"

    def test_paragraph_of_pure_css_skipped(self):
        assert normalize(_article("<p>.a { b: c; }</p><p>Real</p>")) == "Real"

    def test_escaped_markup_in_text_removed(self):
        result = normalize(_article('<p>Use &lt;div class="x"&gt; wrappers</p>'))
        assert result == "Use wrappers"
        assert not _RAW_TAG_RE.search(result)

    def test_inline_image_follows_text(self):
        result = normalize(_article('<p>See <img src="https://ex.com/x.png" alt="x"> here</p>'))
        assert result == "See here\n\n![x](https://ex.com/x.png)"


class TestLists:
    def test_unordered_list(self):
        assert normalize(_article("<ul><li>One</li><li>Two</li></ul>")) == "- One\n- Two"

    def test_ordered_list_ignores_value_attributes(self):
        html = _article('<ol start="4"><li value="7">A</li><li value="3">B</li></ol>')
        assert normalize(html) == "1. A\n2. B"

    def test_numbering_restarts_per_list(self):
        html = _article("<ol><li>A</li><li>B</li></ol><p>Between</p><ol><li>C</li></ol>")
        assert normalize(html) == "1. A\n2. B\n\nBetween\n\n1. C"

    def test_empty_items_do_not_consume_numbers(self):
        assert normalize(_article("<ol><li>A</li><li>  </li><li>B</li></ol>")) == "1. A\n2. B"

    def test_nested_list_indented(self):
        html = _article("<ul><li>Fruit<ul><li>Apple</li><li>Pear</li></ul></li><li>Veg</li></ul>")
        assert normalize(html) == "- Fruit\n  - Apple\n  - Pear\n- Veg"

    def test_nested_ordered_list_has_own_numbering(self):
        html = _article("<ol><li>Step<ol><li>Sub</li></ol></li><li>Next</li></ol>")
        assert normalize(html) == "1. Step\n  1. Sub\n2. Next"

    def test_item_whitespace_collapsed(self):
        assert normalize(_article("<ul><li>  a \n  b </li></ul>")) == "- a b"

    def test_image_inside_list_item(self):
        html = _article('<ul><li><img src="https://x/a.png" alt="A"> caption</li></ul>')
        assert normalize(html) == "- caption\n\n![A](https://x/a.png)"

    def test_items_split_by_br(self):
        assert normalize(_article("<ul><li>one<br>two</li></ul>")) == "- one two"


class TestBlockquote:
    def test_blockquote_prefixed(self):
        assert normalize(_article("<blockquote><p>Quoted   text</p></blockquote>")) == "> Quoted text"

    def test_empty_blockquote_skipped(self):
        assert normalize(_article("<blockquote> </blockquote><p>x</p>")) == "x"

    def test_image_only_blockquote(self):
        html = _article('<blockquote><img src="https://x/b.png" alt="B"></blockquote>')
        assert normalize(html) == "![B](https://x/b.png)"

    def test_block_children_separated(self):
        assert normalize(_article("<blockquote><p>a</p><p>b</p></blockquote>")) == "> a b"


class TestCodeBlocks:
    def test_pre_code_fenced_once_with_language(self):
        html = _article('<pre><code class="language-python">print("hi")</code></pre>')
        assert normalize(html) == '```python\nprint("hi")\n```'

    def test_pre_without_language(self):
        result = normalize(_article("<pre><code>x = 1</code></pre>"))
        assert result == "```\nx = 1\n```"
        assert result.count("x = 1") == 1

    def test_indentation_preserved(self):
        result = normalize(_article("<pre>def f():\n    return 1</pre>"))
        assert "    return 1" in result

    def test_css_code_block_dropped(self):
        assert normalize(_article("<p>Intro</p><pre>.btn { color: red; }</pre>")) == "Intro"

    def test_css_variable_code_block_dropped(self):
        assert normalize(_article("<p>Intro</p><code>--gap: 4px;</code>")) == "Intro"

    def test_empty_code_block_skipped(self):
        assert normalize(_article("<pre>  \n </pre><p>After</p>")) == "After"

    def test_backticks_inside_code_get_longer_fence(self):
        result = normalize(_article("<pre>```\nnested\n```</pre>"))
        assert result.startswith("````\n")
        assert result.endswith("\n````")


class TestImages:
    def test_image_markdown(self):
        html = _article('<img src="https://ex.com/a.png" alt="A cat">')
        assert normalize(html) == "![A cat](https://ex.com/a.png)"

    def test_data_uri_skipped(self):
        html = _article('<p>Text</p><img src="data:image/png;base64,iVBORw0KGgo=" alt="dot">')
        result = normalize(html)
        assert result == "Text"
        assert "data:image" not in result

    def test_picture_uses_inner_img(self):
        html = _article(
            '<picture><source srcset="https://ex.com/p.webp">'
            '<img src="https://ex.com/p.jpg" alt="Pic"></picture>'
        )
        assert normalize(html) == "![Pic](https://ex.com/p.jpg)"

    def test_lazy_data_src(self):
        html = _article('<img data-src="https://ex.com/lazy.png" alt="">')
        assert normalize(html) == "![](https://ex.com/lazy.png)"

    def test_relative_src_resolved_against_base_url(self):
        html = _article('<img src="/img/a.png" alt="">')
        result = normalize(html, base_url="https://example.com/post/1")
        assert result == "![](https://example.com/img/a.png)"

    def test_image_without_src_skipped(self):
        assert normalize(_article('<img alt="nothing"><p>x</p>')) == "x"


class TestInvariants:
    def test_no_script_or_style_leakage(self):
        html = (
            "<html><head><style>.secret-style{color:red}</style></head><body>"
            "<article><p>Visible</p><script>secretScript()</script>"
            "<style>.secret-inline{}</style></article></body></html>"
        )
        result = normalize(html)
        assert result == "Visible"
        assert "secret" not in result

    def test_no_raw_tags(self):
        html = _article(
            "<h1>T</h1><p>a <span>b</span> <em>c</em></p>"
            "<ul><li><a href='#'>d</a></li></ul><div><p>e</p></div>"
        )
        assert not _RAW_TAG_RE.search(normalize(html))

    def test_escaped_unclosed_tag_in_prose_neutralised(self):
        result = normalize(_article("<p>&lt;div unclosed</p>"))
        assert result == "&lt;div unclosed"
        assert not _RAW_TAG_RE.search(result)

    def test_escaped_closing_fragment_in_heading_neutralised(self):
        result = normalize(_article("<h2>Use &lt;/b to close</h2>"))
        assert result == "## Use &lt;/b to close"

    def test_escaped_markup_in_code_block_neutralised(self):
        result = normalize(_article('<pre>&lt;div class="x"&gt;hi&lt;/div&gt;</pre>'))
        assert result == '```\n&lt;div class="x">hi&lt;/div>\n```'
        assert not _RAW_TAG_RE.search(result)

    def test_comparison_operator_in_code_kept(self):
        result = normalize(_article("<pre>if a &lt; b:\n    pass</pre>"))
        assert "if a < b:" in result

    def test_tag_shaped_image_source_neutralised(self):
        result = normalize(_article('<img src="https://ex.com/&lt;b&gt;.png" alt="x">'))
        assert result.startswith("![x](https://ex.com/%3Cb>")
        assert not _RAW_TAG_RE.search(result)

    def test_lone_surrogate_in_text(self):
        result = normalize(_article("<p>x\ud800y</p>"))
        assert result.startswith("x")
        assert result.endswith("y")

    def test_lone_surrogate_before_markup(self):
        assert "Text" in normalize("\ud800<p>Text</p>")

    def test_blank_line_cap(self):
        result = normalize(_article("<pre>a\n\n\n\n\nb</pre><p>x</p>"))
        assert "\n\n\n" not in result

    def test_excluded_element_nested_in_content_removed(self):
        html = _article('<h1>T</h1><div class="advertisement"><p>Buy now</p></div><p>Body</p>')
        assert normalize(html) == "# T\n\nBody"

    def test_malformed_html_does_not_raise(self):
        result = normalize("<article><p>Unclosed <b>bold<p>Next</article></div></span><<>")
        assert "Unclosed" in result
        assert "Next" in result

    def test_pure_function(self):
        html = _article("<h2>Same</h2><p>Every time</p>")
        assert normalize(html) == normalize(html)


class TestConfiguration:
    def test_custom_exclude_selectors(self):
        config = NormalizerConfig(exclude_selectors=[".byline"])
        html = _article('<p class="byline">By Someone</p><p>Story</p>')
        assert normalize(html, config=config) == "Story"

    def test_custom_main_content_selector(self):
        config = NormalizerConfig.model_validate({"mainContentSelectors": ["#story"]})
        html = '<body><article><p>Teaser</p></article><div id="story"><p>Full</p></div></body>'
        assert normalize(html, config=config) == "Full"

    def test_semantic_tags_restrict_output(self):
        config = NormalizerConfig(semantic_tags=["h1", "p"])
        html = _article('<h1>T</h1><img src="https://ex.com/a.png"><ul><li>item</li></ul>')
        assert normalize(html, config=config) == "# T"


class TestCleanText:
    def test_collapses_whitespace(self):
        assert clean_text("  a \n\t b  ") == "a b"

    def test_empty(self):
        assert clean_text("") == ""


class TestCollapseBlankLines:
    def test_caps_newlines(self):
        assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"

    def test_strips_trailing_whitespace(self):
        assert collapse_blank_lines("a   \nb\t\n") == "a\nb"

    def test_idempotent(self):
        text = "  x  \n\n\n\n y \t\n\n\n\nz\n\n"
        once = collapse_blank_lines(text)
        assert collapse_blank_lines(once) == once
