from chat_core.rendering import render


def test_script_tags_are_escaped():
    html = render("<script>alert(1)</script>")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_javascript_links_are_dropped():
    html = render("[click](javascript:alert(1))")
    assert 'href="javascript:' not in html


def test_fenced_code_gets_language_class():
    html = render("```python\nprint(1)\n```")
    assert '<code class="language-python">' in html


def test_tables_and_line_breaks():
    assert "<table>" in render("| a | b |\n|---|---|\n| 1 | 2 |")
    assert "<br" in render("first\nsecond")


def test_empty_input():
    assert render("") == ""
