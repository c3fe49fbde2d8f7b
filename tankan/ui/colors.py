"""Palette for the practice window."""


class PracticeColors:
    """Light theme palette."""

    BG = "#fdf6ec"
    CARD_BG = "#ffffff"
    CARD_BORDER = "#ecdcc4"

    PRIMARY = "#c2410c"
    PRIMARY_LIGHT = "#fb923c"

    TEXT_PRIMARY = "#1f2937"
    TEXT_SECONDARY = "#4b5563"
    TEXT_MUTED = "#9ca3af"

    CORRECT = "#15803d"
    ERROR = "#dc2626"
    ERROR_BG = "#fee2e2"
    HIGHLIGHT = "#1d4ed8"
    HIGHLIGHT_BG = "#dbeafe"

    KEY_BG = "#f9fafb"
    KEY_BORDER = "#d1d5db"


# Index = finger number, left pinky (0) to right pinky (9).
FINGER_COLORS = (
    "#f87171",
    "#fb923c",
    "#facc15",
    "#4ade80",
    "#a3a3a3",
    "#a3a3a3",
    "#38bdf8",
    "#818cf8",
    "#c084fc",
    "#f472b6",
)


def finger_color(finger: int) -> str:
    if 0 <= finger < len(FINGER_COLORS):
        return FINGER_COLORS[finger]
    return PracticeColors.KEY_BORDER


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    a = a.strip()
    b = b.strip()
    if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
        return a
    try:
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
    except ValueError:
        return a
    t = max(0.0, min(1.0, float(t)))
    r = int(ar + (br - ar) * t)
    g = int(ag + (bg - ag) * t)
    bl = int(ab + (bb - ab) * t)
    return f"#{r:02X}{g:02X}{bl:02X}"
