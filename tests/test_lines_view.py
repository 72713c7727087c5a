from __future__ import annotations

import gzip
import os
import threading
from pathlib import Path

import pytest

from common.errors import ErrorCode, OpenError, ReadError, UnsupportedOperation
from common.models import ReaderSettings
from core.lines import LinesView
from core.lines import view as view_module

SAMPLE = "alpha\nbravo\ncharlie\n\ndelta"
SAMPLE_LINES = ["alpha", "bravo", "charlie", "", "delta"]


def _write(tmp_path: Path, text: str, name: str = "lines.txt") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8", newline="")
    return path


def _count_opens(monkeypatch) -> list:
    opened: list = []
    original = view_module.open_text_channel

    def counting_open(path, **kwargs):
        opened.append(path)
        return original(path, **kwargs)

    monkeypatch.setattr(view_module, "open_text_channel", counting_open)
    return opened


def test_collect_all_returns_lines_in_order(tmp_path) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8")
    assert view.collect_all() == SAMPLE_LINES


def test_collect_all_unaffected_by_other_streams(tmp_path) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8")
    dangling = view.new_stream()
    next(dangling)
    with view.new_stream() as other:
        other.has_more()
        assert view.collect_all() == SAMPLE_LINES
    dangling.close()


def test_line_terminators_are_normalized(tmp_path) -> None:
    view = LinesView(_write(tmp_path, "a\r\nb\rc\nd\n"), "utf-8")
    assert view.collect_all() == ["a", "b", "c", "d"]


def test_count_is_cached_and_matches_collect_all(tmp_path, monkeypatch) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8")
    opened = _count_opens(monkeypatch)
    assert view.cached_count is None
    assert view.count() == 5
    assert len(opened) == 1
    assert view.count() == 5
    assert len(view) == 5
    assert len(opened) == 1
    assert view.count() == len(view.collect_all())


def test_concurrent_first_count_scans_once(tmp_path, monkeypatch) -> None:
    view = LinesView(_write(tmp_path, "x\n" * 2000), "utf-8")
    opened = _count_opens(monkeypatch)
    results: list[int] = []
    start = threading.Barrier(8)

    def worker() -> None:
        start.wait()
        results.append(view.count())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert results == [2000] * 8
    assert len(opened) == 1


def test_empty_file(tmp_path) -> None:
    view = LinesView(_write(tmp_path, ""), "utf-8")
    assert not view.new_stream().has_more()
    assert view.count() == 0
    assert view.collect_all() == []
    assert view.render_all() == ""


def test_streams_progress_independently(tmp_path) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8")
    with view.new_stream() as first, view.new_stream() as second:
        assert next(first) == "alpha"
        assert next(first) == "bravo"
        assert next(second) == "alpha"
        assert next(first) == "charlie"
        assert next(second) == "bravo"


def test_compressed_view_matches_plain_view(tmp_path) -> None:
    plain = _write(tmp_path, SAMPLE)
    packed = tmp_path / "lines.txt.gz"
    with gzip.open(packed, "wb") as handle:
        handle.write(SAMPLE.encode("utf-8"))
    assert LinesView(packed, "utf-8", compressed=True).collect_all() == LinesView(plain, "utf-8").collect_all()


def test_bad_gzip_header_fails_on_open(tmp_path) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8", compressed=True)
    with pytest.raises(OpenError) as exc:
        view.new_stream()
    assert exc.value.code == ErrorCode.OPEN_ERROR


def test_missing_path_fails_on_open(tmp_path) -> None:
    view = LinesView(tmp_path / "missing.txt", "utf-8")
    with pytest.raises(OpenError):
        view.new_stream()
    with pytest.raises(OpenError):
        view.count()
    assert view.cached_count is None


def test_unknown_encoding_fails_on_open(tmp_path) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "no-such-codec")
    with pytest.raises(OpenError):
        view.new_stream()


def test_platform_default_encoding(tmp_path) -> None:
    view = LinesView(_write(tmp_path, "plain\nascii\n"))
    assert view.encoding is None
    assert view.collect_all() == ["plain", "ascii"]


def test_replace_policy_substitutes_bad_bytes(tmp_path) -> None:
    path = tmp_path / "latin.txt"
    path.write_bytes(b"caf\xe9\nok\n")
    view = LinesView(path, "utf-8", errors="replace")
    assert view.collect_all() == ["caf\ufffd", "ok"]


def test_render_all_round_trips_with_collect_all(tmp_path) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8")
    rendered = view.render_all()
    assert not rendered.endswith(os.linesep)
    assert rendered.split(os.linesep) == view.collect_all()
    assert str(view) == rendered


def test_to_array_is_unsupported_without_io(tmp_path, monkeypatch) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8")
    opened = _count_opens(monkeypatch)
    with pytest.raises(UnsupportedOperation, match="collect_all"):
        view.to_array()
    assert opened == []


def test_collection_surface(tmp_path) -> None:
    view = LinesView(_write(tmp_path, SAMPLE), "utf-8")
    assert "charlie" in view
    assert "echo" not in view
    assert 5 not in view
    assert list(view) == SAMPLE_LINES
    assert list(iter(view)) == SAMPLE_LINES


def test_from_settings_detects_gzip_suffix(tmp_path) -> None:
    packed = tmp_path / "lines.gz"
    with gzip.open(packed, "wt", encoding="utf-8") as handle:
        handle.write(SAMPLE)
    view = LinesView.from_settings(packed, ReaderSettings(error_policy="replace"))
    assert view.compressed
    assert view.errors == "replace"
    assert view.collect_all() == SAMPLE_LINES

    plain = LinesView.from_settings(packed, ReaderSettings(compression="none"))
    assert not plain.compressed


def test_default_view_keeps_lines_around_bad_bytes(tmp_path) -> None:
    path = tmp_path / "mixed.txt"
    path.write_bytes(b"ok1\n" + b"caf\xe9\n" * 3000 + b"tail\n")
    view = LinesView(path, "utf-8")
    assert view.errors == "replace"
    lines = view.collect_all()
    assert lines[0] == "ok1"
    assert lines[1] == "caf\ufffd"
    assert lines[-1] == "tail"
    assert view.count() == 3002


def test_strict_view_fails_on_bad_bytes(tmp_path) -> None:
    path = tmp_path / "mixed.txt"
    path.write_bytes(b"ok1\n" + b"caf\xe9\n" * 3000 + b"tail\n")
    with pytest.raises(ReadError):
        LinesView(path, "utf-8", errors="strict").collect_all()


def test_truncated_gzip_raises_read_error(tmp_path) -> None:
    packed = tmp_path / "cut.gz"
    payload = gzip.compress("".join(f"row{i}\n" for i in range(5000)).encode("utf-8"))
    packed.write_bytes(payload[: len(payload) // 2])
    view = LinesView(packed, "utf-8", compressed=True)
    with pytest.raises(ReadError) as exc:
        view.count()
    assert exc.value.code == ErrorCode.READ_ERROR
    assert view.cached_count is None
    with pytest.raises(ReadError):
        view.collect_all()


def test_corrupt_gzip_body_raises_read_error(tmp_path) -> None:
    packed = tmp_path / "corrupt.gz"
    header = gzip.compress(b"alpha\n")[:10]
    packed.write_bytes(header + b"\xff" * 64)
    view = LinesView(packed, "utf-8", compressed=True)
    with pytest.raises(ReadError):
        view.count()
    assert view.cached_count is None
    with pytest.raises(ReadError):
        view.collect_all()


def test_compressed_stream_opens_file_once_and_releases_it(tmp_path, monkeypatch) -> None:
    packed = tmp_path / "lines.gz"
    with gzip.open(packed, "wt", encoding="utf-8") as handle:
        handle.write(SAMPLE)
    opened: list = []
    original_open = Path.open

    def tracking_open(self, *args, **kwargs):
        handle = original_open(self, *args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr(Path, "open", tracking_open)
    view = LinesView(packed, "utf-8", compressed=True)
    with view.new_stream() as stream:
        assert next(stream) == "alpha"
    assert len(opened) == 1
    assert all(handle.closed for handle in opened)
