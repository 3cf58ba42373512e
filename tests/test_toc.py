import pytest

from wildbow_epub import TocMissing, normalize_url, parse_toc
from wildbow_epub.parsers import toc_url

ROOT = "https://www.parahumans.net"


def test_normalize_url_variants():
    assert normalize_url(ROOT, "/x") == "https://www.parahumans.net/x"
    assert normalize_url(ROOT, "https://y.example/z") == "https://y.example/z"
    assert normalize_url(ROOT, "http://y.example/z") == "http://y.example/z"
    assert normalize_url(ROOT, "w.example/q") == "https://w.example/q"
    assert normalize_url(ROOT + "/", "/x") == "https://www.parahumans.net/x"


def test_toc_url_trims_trailing_slash():
    assert toc_url(ROOT + "/") == "https://www.parahumans.net/table-of-contents/"


def test_parse_toc_order_normalization_and_duplicates():
    html = """
    <div class="sidebar"><a href="/ignored">Not a chapter</a></div>
    <div class="entry-content">
      <p><strong>Arc 1</strong></p>
      <p><a href="/x">Glow-worm 0.1</a> <a>no href</a></p>
      <p><a href="https://y.example/z"><em>Daybreak</em> 1.1</a></p>
      <p><a href="w.example/q"> Daybreak 1.2 </a></p>
      <p><a href="/x">Glow-worm 0.1</a></p>
    </div>
    """
    toc = parse_toc(ROOT, html)
    assert [c.url for c in toc] == [
        "https://www.parahumans.net/x",
        "https://y.example/z",
        "https://w.example/q",
        "https://www.parahumans.net/x",
    ]
    assert [c.title for c in toc] == ["Glow-worm 0.1", "Daybreak 1.1", " Daybreak 1.2 ", "Glow-worm 0.1"]
    assert all(c.content == "" for c in toc)
    assert all(c.url.startswith(("http://", "https://")) for c in toc)


def test_parse_toc_missing_entry_content():
    with pytest.raises(TocMissing) as exc:
        parse_toc(ROOT, "<html><body><p>Maintenance</p></body></html>")
    assert exc.value.url == "https://www.parahumans.net/table-of-contents/"
