import pytest

from blereceipt import commands


def test_initialize():
    assert commands.initialize() == b"\x1b\x40"


def test_alignment():
    assert commands.left_align() == b"\x1b\x61\x00"
    assert commands.center_align() == b"\x1b\x61\x01"
    assert commands.right_align() == b"\x1b\x61\x02"


@pytest.mark.parametrize("name, expected", [
    ("left", b"\x1b\x61\x00"),
    ("CENTER", b"\x1b\x61\x01"),
    ("right", b"\x1b\x61\x02"),
    ("justify", b"\x1b\x61\x00"),
    (None, b"\x1b\x61\x00"),
])
def test_align_by_name(name, expected):
    assert commands.align(name) == expected


@pytest.mark.parametrize("point_size, mode", [
    (0, 0x00),
    (11, 0x00),
    (12, 0x00),
    (13, 0x10),
    (15, 0x10),
    (16, 0x10),
    (17, 0x20),
    (23, 0x20),
    (24, 0x20),
    (25, 0x30),
    (72, 0x30),
])
def test_font_size_tiers(point_size, mode):
    assert commands.set_font_size_for_point_size(point_size) == bytes([0x1B, 0x21, mode])


@pytest.mark.parametrize("n, expected", [
    (3, b"\x1b\x64\x03"),
    (0, b"\x1b\x64\x00"),
    (255, b"\x1b\x64\xff"),
    (300, b"\x1b\x64\xff"),
    (-4, b"\x1b\x64\x00"),
])
def test_feed_lines_clamps(n, expected):
    assert commands.feed_lines(n) == expected


def test_cuts():
    assert commands.full_cut() == b"\x1d\x56\x00"
    assert commands.partial_cut() == b"\x1d\x56\x01"


def test_text_line_is_utf8_with_line_feed():
    assert commands.text_line("Hello") == b"Hello\n"
    assert commands.text_line("Café") == "Café".encode("utf-8") + b"\n"
    assert commands.text_line("") == b"\n"


def test_text_has_no_line_feed():
    assert commands.text("Total") == b"Total"


def test_emphasis():
    assert commands.set_bold(True) == b"\x1b\x45\x01"
    assert commands.set_bold(False) == b"\x1b\x45\x00"
    assert commands.set_underline(True) == b"\x1b\x2d\x01"
    assert commands.set_underline(False) == b"\x1b\x2d\x00"


@pytest.mark.parametrize("width, height, value", [
    (1, 1, 0x00),
    (2, 2, 0x11),
    (8, 1, 0x70),
    (0, 9, 0x00),
])
def test_character_size(width, height, value):
    assert commands.set_character_size(width, height) == bytes([0x1D, 0x21, value])


def test_line_spacing():
    assert commands.set_line_spacing(30) == b"\x1b\x33\x1e"
    assert commands.reset_line_spacing() == b"\x1b\x32"


def test_code_pages():
    assert commands.set_code_page(0) == b"\x1b\x74\x00"
    assert commands.set_code_page(999) == b"\x1b\x74\xff"
    assert commands.set_utf8() == b"\x1b\x74\x10\x1b\x52\x0f"
