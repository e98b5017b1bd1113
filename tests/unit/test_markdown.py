from service_manual.adapters.markdown import MistuneMarkdownRenderer


def test_renders_markdown():
    assert MistuneMarkdownRenderer().render("# heading") == "<h1>heading</h1>\n"


def test_autolinks_bare_urls():
    html = MistuneMarkdownRenderer().render("http://example.org")
    assert html == '<p><a href="http://example.org">http://example.org</a></p>\n'


def test_escapes_raw_html():
    html = MistuneMarkdownRenderer().render("<script>alert(1)</script>")
    assert "<script>" not in html


def test_empty_note():
    assert MistuneMarkdownRenderer().render("") == ""
