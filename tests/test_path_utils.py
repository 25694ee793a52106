from __future__ import annotations

import pytest

from seq2gif.utils.path import detect_pad_width, name_matcher, parse_stem, printf_to_regex


def test_parse_stem():
    assert parse_stem("weights-007") == ("weights-", "007")
    assert parse_stem("001") == ("", "001")
    assert parse_stem("no_number") is None
    assert parse_stem("v2_final") is None


@pytest.mark.parametrize(
    "numbers, expected",
    [
        (["000", "001", "099"], 3),
        (["000", "999", "1000"], 3),
        (["1", "2", "10"], 1),
        (["01", "2"], None),
        ([], None),
    ],
)
def test_detect_pad_width(numbers, expected):
    assert detect_pad_width(numbers) == expected


def test_printf_to_regex():
    rx = printf_to_regex("weights-%03d.ppm")

    assert rx.match("weights-000.ppm")
    assert rx.match("weights-1000.ppm")
    assert not rx.match("weights-00.ppm")
    assert not rx.match("weights-000.ppm.bak")


def test_printf_literal_percent():
    assert printf_to_regex("100%%-%d.png").match("100%-7.png")


def test_printf_needs_one_conversion():
    with pytest.raises(ValueError):
        printf_to_regex("frame.png")
    with pytest.raises(ValueError):
        printf_to_regex("%d-%d.png")


def test_name_matcher_glob_and_printf():
    glob = name_matcher("weights-*.ppm")
    printf = name_matcher("weights-%03d.ppm")

    assert glob("weights-001.ppm")
    assert not glob("bias-001.ppm")
    assert printf("weights-001.ppm")
    assert not printf("weights-1.ppm")


def test_name_matcher_rejects_bare_percent():
    with pytest.raises(ValueError):
        name_matcher("100%.png")
