from tagsmith.engine import TagScanner
from tagsmith.engine.scanner import protect_comments, restore_comments


def test_finds_component_tags_and_skips_void_elements() -> None:
    text = '<p>x</p><card title="a"/><br/><img src="x.png" /><BR/><hero />'

    names = [tag.name for tag in TagScanner().find_tags(text)]

    assert names == ["card", "hero"]


def test_tags_inside_comments_are_never_expanded() -> None:
    text = '<div><!-- <fakeComponent prop="x" /> --></div>'
    calls = []

    result = TagScanner().expand(text, lambda tag: calls.append(tag.name) or "X")

    assert result == text
    assert calls == []


def test_multiline_comments_are_restored_verbatim() -> None:
    text = "a<!--\n<one/>\n-->b<two/><!-- <three/> -->c"

    result = TagScanner().expand(text, lambda tag: f"[{tag.name}]")

    assert result == "a<!--\n<one/>\n-->b[two]<!-- <three/> -->c"


def test_protect_and_restore_comments() -> None:
    text = "<!-- a --><p/><!-- b -->"

    protected, comments = protect_comments(text)

    assert "<!--" not in protected
    assert comments == ["<!-- a -->", "<!-- b -->"]
    assert restore_comments(protected, comments) == text


def test_path_qualified_names_only_in_nested_variant() -> None:
    text = '<ui/card title="x"/>'

    assert TagScanner(nested=False).find_tags(text) == []
    assert [tag.name for tag in TagScanner(nested=True).find_tags(text)] == ["ui/card"]


def test_none_keeps_original_tag_text() -> None:
    text = 'before <missing a="1" /> after'

    assert TagScanner().expand(text, lambda tag: None) == text


def test_attributes_are_captured_raw() -> None:
    (tag,) = TagScanner().find_tags('<card title="Hi" size = "lg" />')

    assert tag.name == "card"
    assert 'title="Hi"' in tag.attributes
    assert 'size = "lg"' in tag.attributes
