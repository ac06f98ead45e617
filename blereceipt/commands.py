"""ESC/POS command builders.

Pure functions returning the exact byte sequences understood by ESC/POS
receipt printers. Numeric arguments are clamped, never rejected.
"""

# ESC/POS control characters
ESC = 0x1B
GS = 0x1D
LF = 0x0A

# ESC ! n print mode values, by tier
FONT_NORMAL = 0x00
FONT_DOUBLE_HEIGHT = 0x10
FONT_DOUBLE_WIDTH = 0x20
FONT_DOUBLE_WIDTH_HEIGHT = 0x30


def _byte(n) -> int:
    return max(0, min(255, int(n)))


# --- Printer control ---
def initialize() -> bytes:
    """ESC @ - reset printer to power-on settings."""
    return bytes([ESC, 0x40])


def feed_lines(n: int) -> bytes:
    """ESC d n - print buffer and feed n lines."""
    return bytes([ESC, 0x64, _byte(n)])


def full_cut() -> bytes:
    return bytes([GS, 0x56, 0x00])


def partial_cut() -> bytes:
    return bytes([GS, 0x56, 0x01])


# --- Alignment ---
def left_align() -> bytes:
    return bytes([ESC, 0x61, 0x00])


def center_align() -> bytes:
    return bytes([ESC, 0x61, 0x01])


def right_align() -> bytes:
    return bytes([ESC, 0x61, 0x02])


_ALIGNMENTS = {
    "left": left_align,
    "center": center_align,
    "right": right_align,
}


def align(name: str) -> bytes:
    """Alignment command by name; unknown names give left alignment."""
    return _ALIGNMENTS.get((name or "").lower(), left_align)()


# --- Character formatting ---
def set_font_size_for_point_size(point_size: int) -> bytes:
    """Map a point size onto the four ESC ! print mode tiers.

    <=12 normal, <=16 double height, <=24 double width, larger sizes
    double width and height.
    """
    if point_size <= 12:
        mode = FONT_NORMAL
    elif point_size <= 16:
        mode = FONT_DOUBLE_HEIGHT
    elif point_size <= 24:
        mode = FONT_DOUBLE_WIDTH
    else:
        mode = FONT_DOUBLE_WIDTH_HEIGHT
    return bytes([ESC, 0x21, mode])


def set_character_size(width: int = 1, height: int = 1) -> bytes:
    """GS ! n - magnification 1..8 in each direction (out of range resets to 1)."""
    if width < 1 or width > 8:
        width = 1
    if height < 1 or height > 8:
        height = 1
    return bytes([GS, 0x21, ((width - 1) << 4) | (height - 1)])


def set_bold(enabled: bool) -> bytes:
    return bytes([ESC, 0x45, 1 if enabled else 0])


def set_underline(enabled: bool) -> bytes:
    return bytes([ESC, 0x2D, 1 if enabled else 0])


def set_line_spacing(dots: int) -> bytes:
    return bytes([ESC, 0x33, _byte(dots)])


def reset_line_spacing() -> bytes:
    return bytes([ESC, 0x32])


# --- Code pages ---
def set_code_page(page: int) -> bytes:
    """ESC t n - select character code table."""
    return bytes([ESC, 0x74, _byte(page)])


def set_utf8() -> bytes:
    """Best-effort Unicode: code table 16 followed by international set 15."""
    return set_code_page(16) + bytes([ESC, 0x52, 0x0F])


# --- Text ---
def text(s: str) -> bytes:
    return (s or "").encode("utf-8")


def text_line(s: str) -> bytes:
    """UTF-8 text followed by a line feed."""
    return text(s) + bytes([LF])
