from pathlib import Path

from tagsmith.util import read_text_file, safe_unlink, write_text_file


def test_text_round_trip_keeps_line_endings(tmp_path: Path) -> None:
    target = write_text_file(tmp_path / "nested" / "page.html", "a\r\nb\rc\n")

    assert target.read_bytes() == b"a\r\nb\rc\n"
    assert read_text_file(target) == "a\r\nb\rc\n"
    assert sorted(target.parent.iterdir()) == [target]


def test_safe_unlink_refuses_paths_outside_base(tmp_path: Path) -> None:
    base = tmp_path / "out"
    inside = write_text_file(base / "keep.html", "x")
    outside = write_text_file(tmp_path / "elsewhere.html", "y")

    assert safe_unlink(outside, base_dir=base) is False
    assert outside.exists()
    assert safe_unlink(inside, base_dir=base) is True
    assert safe_unlink(inside, base_dir=base) is False
