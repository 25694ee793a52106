from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from conftest import BLUE, GREEN, RED, write_frames
from seq2gif.core.errors import InputError
from seq2gif.processing.frames import (
    first_missing_index,
    scan_frames,
    sequence_from_paths,
    validate_frames,
)


def test_scan_orders_frames_numerically(tmp_path: Path):
    write_frames(tmp_path, [RED] * 12, name="weights-{:03d}.ppm")

    seq = scan_frames(tmp_path)

    assert [f.index for f in seq.frames] == list(range(12))
    assert seq.prefix == "weights-"
    assert seq.ext == ".ppm"
    assert seq.pad_width == 3
    assert seq.ffmpeg_pattern == str(tmp_path / "weights-%03d.ppm")


def test_scan_accepts_one_indexed_sequences(tmp_path: Path):
    write_frames(tmp_path, [RED, GREEN, BLUE], indices=[1, 2, 3])

    seq = scan_frames(tmp_path)

    assert seq.start_index == 1
    assert len(seq) == 3


def test_unpadded_names_use_plain_pattern(tmp_path: Path):
    write_frames(tmp_path, [RED] * 11, name="f{}.png")

    seq = scan_frames(tmp_path)

    assert seq.pad_width == 1
    assert seq.ffmpeg_pattern.endswith("f%d.png")


def test_mixed_padding_has_no_pattern(tmp_path: Path):
    Image.new("RGB", (4, 4), RED).save(tmp_path / "f01.png")
    Image.new("RGB", (4, 4), RED).save(tmp_path / "f2.png")

    seq = scan_frames(tmp_path)

    assert seq.pad_width is None
    assert seq.ffmpeg_pattern is None


def test_scan_ignores_unrelated_files(tmp_path: Path):
    write_frames(tmp_path, [RED] * 3)
    (tmp_path / "notes.txt").write_text("hello")
    Image.new("RGB", (4, 4), RED).save(tmp_path / "cover.png")

    seq = scan_frames(tmp_path)

    assert len(seq) == 3


def test_scan_with_printf_pattern_selects_group(tmp_path: Path):
    write_frames(tmp_path, [RED] * 3, name="a-{:03d}.png")
    write_frames(tmp_path, [GREEN] * 5, name="b-{:03d}.png")

    seq = scan_frames(tmp_path, pattern="a-%03d.png")

    assert seq.prefix == "a-"
    assert len(seq) == 3


def test_scan_with_glob_pattern(tmp_path: Path):
    write_frames(tmp_path, [RED] * 2, name="a-{:03d}.png")
    write_frames(tmp_path, [GREEN] * 2, name="b-{:03d}.png")

    seq = scan_frames(tmp_path, pattern="b-*.png")

    assert seq.prefix == "b-"


def test_equal_sized_groups_are_ambiguous(tmp_path: Path):
    write_frames(tmp_path, [RED] * 2, name="a-{:03d}.png")
    write_frames(tmp_path, [GREEN] * 2, name="b-{:03d}.png")

    with pytest.raises(InputError, match="Ambiguous"):
        scan_frames(tmp_path)


def test_scan_missing_directory(tmp_path: Path):
    with pytest.raises(InputError, match="not found"):
        scan_frames(tmp_path / "nope")


def test_scan_empty_directory(tmp_path: Path):
    with pytest.raises(InputError, match="No frames"):
        scan_frames(tmp_path)


def test_duplicate_indices_are_rejected(tmp_path: Path):
    Image.new("RGB", (4, 4), RED).save(tmp_path / "f01.png")
    Image.new("RGB", (4, 4), RED).save(tmp_path / "f1.png")

    with pytest.raises(InputError, match="Duplicate frame index 1"):
        scan_frames(tmp_path)


def test_explicit_start_index_reports_missing_start(tmp_path: Path):
    write_frames(tmp_path, [RED, GREEN], indices=[1, 2])

    with pytest.raises(InputError, match="Missing frame index 0"):
        scan_frames(tmp_path, start_index=0)


def test_gap_reports_first_missing_index(tmp_path: Path):
    write_frames(tmp_path, [RED, GREEN, BLUE, RED], indices=[0, 1, 2, 4])
    seq = scan_frames(tmp_path)

    with pytest.raises(InputError, match="Missing frame index 3"):
        validate_frames(seq)


def test_first_missing_index():
    assert first_missing_index([0, 1, 2, 4]) == 3
    assert first_missing_index([5, 6, 8, 10]) == 7
    assert first_missing_index([1, 2, 3]) is None


def test_dimension_mismatch_names_offending_index(tmp_path: Path):
    write_frames(tmp_path, [RED, GREEN], size=(64, 64))
    write_frames(tmp_path, [BLUE], indices=[2], size=(32, 64))
    seq = scan_frames(tmp_path)

    with pytest.raises(InputError) as exc:
        validate_frames(seq)
    message = str(exc.value)
    assert "index 2" in message
    assert "32x64" in message
    assert "64x64" in message


def test_corrupt_frame_reports_index_and_cause(tmp_path: Path):
    write_frames(tmp_path, [RED, GREEN, BLUE])
    (tmp_path / "frame-001.png").write_bytes(b"not a png at all")
    seq = scan_frames(tmp_path)

    with pytest.raises(InputError, match=r"Cannot decode frame index 1 \(frame-001.png\)"):
        validate_frames(seq)


def test_validate_records_dimensions(tmp_path: Path):
    write_frames(tmp_path, [RED, GREEN], size=(20, 10))

    seq = validate_frames(scan_frames(tmp_path))

    assert all(f.size == (20, 10) for f in seq.frames)
    assert seq.frames[0].mode == "RGB"


def test_enumerated_frames_missing_file(tmp_path: Path):
    paths = write_frames(tmp_path, [RED, GREEN])
    seq = sequence_from_paths([paths[0], tmp_path / "gone.png", paths[1]])

    assert seq.ffmpeg_pattern is None
    with pytest.raises(InputError, match="Missing frame index 1"):
        validate_frames(seq)


@pytest.mark.parametrize("pattern", ["frame-%03d-%03d.png", "100%.png"])
def test_malformed_printf_pattern(tmp_path: Path, pattern):
    write_frames(tmp_path, [RED, GREEN])

    with pytest.raises(InputError, match="Invalid frame pattern"):
        scan_frames(tmp_path, pattern=pattern)


def test_enumerated_frames_must_share_format(tmp_path: Path):
    pngs = write_frames(tmp_path, [RED, GREEN])
    jpg = write_frames(tmp_path, [BLUE], indices=[2], name="frame-{:03d}.jpg")[0]

    with pytest.raises(InputError, match=r"frame index 2 is frame-002\.jpg"):
        sequence_from_paths([*pngs, jpg])


def test_enumerated_frame_extension_case_is_ignored(tmp_path: Path):
    paths = write_frames(tmp_path, [RED], name="a{}.png") + write_frames(tmp_path, [GREEN], name="b{}.PNG")

    assert len(sequence_from_paths(paths)) == 2
