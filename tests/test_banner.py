"""Tests for disclaimer banner injection."""

from jecnaproxy.proxy.banner import BANNER_ID, inject_banner, render_banner
from jecnaproxy.upstream import JIDELNA, SPSEJECNA

BANNER = render_banner(SPSEJECNA)
BANNER_OPEN = f'<div id="{BANNER_ID}"'


class TestRenderBanner:
    def test_starts_with_overlay(self):
        assert BANNER.startswith(BANNER_OPEN)

    def test_links_to_real_site(self):
        assert 'href="https://spsejecna.cz"' in BANNER
        assert 'href="https://strav.nasejidelna.cz"' in render_banner(JIDELNA)

    def test_has_redirect_timer(self):
        assert "<script>" in BANNER
        assert "window.location.href" in BANNER
        assert "setInterval" in BANNER

    def test_countdown(self):
        assert ">5</span>" in render_banner(SPSEJECNA, seconds=5)


class TestInjectBanner:
    def test_after_body_with_attributes(self):
        html = "<html><body class='x'><p>hi</p></body></html>"
        result = inject_banner(html, BANNER)
        assert f"<body class='x'>{BANNER_OPEN}" in result
        assert result.endswith("<p>hi</p></body></html>")

    def test_plain_body(self):
        result = inject_banner("<body><p>x</p></body>", BANNER)
        assert result == "<body>" + BANNER + "<p>x</p></body>"

    def test_case_insensitive(self):
        result = inject_banner("<HTML><BODY onload=\"init()\">x</BODY>", BANNER)
        assert result.startswith("<HTML><BODY onload=\"init()\">" + BANNER_OPEN)

    def test_quoted_gt_in_attribute(self):
        html = '<body data-rule="a>b" class=main>content'
        result = inject_banner(html, BANNER)
        assert result == '<body data-rule="a>b" class=main>' + BANNER + "content"

    def test_multiline_attributes(self):
        html = "<body\n  class='x'\n  id=\"y\">z"
        assert inject_banner(html, BANNER) == "<body\n  class='x'\n  id=\"y\">" + BANNER + "z"

    def test_unquoted_apostrophe_in_attribute(self):
        html = "<html><body data-name=O'Brien><p>it's here</p></body></html>"
        result = inject_banner(html, BANNER)
        assert result == "<html><body data-name=O'Brien>" + BANNER + "<p>it's here</p></body></html>"

    def test_unterminated_quote_ends_at_first_gt(self):
        html = '<body class="main><p>say "hi"</p>'
        result = inject_banner(html, BANNER)
        assert result == '<body class="main>' + BANNER + '<p>say "hi"</p>'

    def test_only_first_body(self):
        html = "<body>a</body><body>b</body>"
        result = inject_banner(html, BANNER)
        assert result.count(BANNER_OPEN) == 1
        assert result.startswith("<body>" + BANNER_OPEN)

    def test_similar_tag_names_ignored(self):
        html = "<bodyguard>x</bodyguard>"
        assert inject_banner(html, BANNER) == BANNER + html

    def test_no_body_prepends(self):
        html = "<div>fragment</div>"
        result = inject_banner(html, BANNER)
        assert result.startswith(BANNER_OPEN)
        assert result.endswith(html)

    def test_empty_document(self):
        assert inject_banner("", BANNER) == BANNER
