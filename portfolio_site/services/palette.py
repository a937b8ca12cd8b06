"""Color palette generation for the light and dark themes.

A single base HSL color is expanded into the full set of semantic color roles
used by the stylesheet. Values are emitted in the space-separated
``"H S% L%"`` form so they can be dropped into ``hsl(var(--primary))``.
"""

import random
from typing import Dict, Optional
from pydantic import BaseModel


class HSLColor(BaseModel):
    """HSL color with hue in degrees and saturation/lightness in percent."""

    h: int  # 0-360
    s: int  # 0-100
    l: int  # 0-100


class ColorPalette(BaseModel):
    """Semantic color roles for one theme variant."""

    background: str
    foreground: str
    card: str
    card_foreground: str
    popover: str
    popover_foreground: str
    primary: str
    primary_foreground: str
    secondary: str
    secondary_foreground: str
    muted: str
    muted_foreground: str
    accent: str
    accent_foreground: str
    destructive: str
    destructive_foreground: str
    border: str
    input: str
    ring: str


class ThemePalettes(BaseModel):
    light: ColorPalette
    dark: ColorPalette


# Accent names the layout generator may return, plus extras
COLOR_HUE_MAP: Dict[str, int] = {
    "blue": 210,
    "green": 145,
    "purple": 270,
    "orange": 25,
    "pink": 330,
    "teal": 175,
    "cyan": 185,
    "red": 0,
    "yellow": 50,
    "indigo": 240,
    "violet": 280,
    "rose": 345,
    "amber": 35,
    "lime": 85,
    "emerald": 155,
    "sky": 200,
    "slate": 215,
}

DEFAULT_SATURATION = 70
DEFAULT_LIGHTNESS = 40

DEFAULT_BASE_COLOR = HSLColor(h=175, s=DEFAULT_SATURATION, l=DEFAULT_LIGHTNESS)

# Error colors keep their red hue whatever the base color is
LIGHT_DESTRUCTIVE = "0 84.2% 60.2%"
DARK_DESTRUCTIVE = "0 62.8% 30.6%"
DESTRUCTIVE_FOREGROUND = "0 0% 98%"


def generate_random_hue(rng: Optional[random.Random] = None) -> int:
    """Return a random hue in [0, 360)."""
    return (rng or random).randrange(360)


def color_name_to_hsl(color_name: str, rng: Optional[random.Random] = None) -> HSLColor:
    """
    Convert an accent name to a base color.

    Unknown names get a random hue.
    """
    normalized = color_name.lower().strip()
    hue = COLOR_HUE_MAP.get(normalized)
    if hue is None:
        hue = generate_random_hue(rng)
    return HSLColor(h=hue, s=DEFAULT_SATURATION, l=DEFAULT_LIGHTNESS)


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return min(max(value, low), high)


def _hsl(h: int, s: int, l: int) -> str:
    return f"{h} {s}% {l}%"


def generate_palette(base: HSLColor = DEFAULT_BASE_COLOR) -> ThemePalettes:
    """
    Derive light and dark palettes from a base color.

    Args:
        base: Base brand color

    Returns:
        ThemePalettes: Palettes for both theme variants
    """
    h = base.h

    light = ColorPalette(
        background=_hsl(h, 10, 99),
        foreground=_hsl(h, 30, 10),
        card=_hsl(h, 10, 98),
        card_foreground=_hsl(h, 30, 10),
        popover=_hsl(h, 10, 98),
        popover_foreground=_hsl(h, 30, 10),
        primary=_hsl(h, base.s, base.l),
        primary_foreground=_hsl(h, 10, 98),
        secondary=_hsl(h, 25, 92),
        secondary_foreground=_hsl(h, 50, 25),
        muted=_hsl(h, 20, 94),
        muted_foreground=_hsl(h, 15, 45),
        accent=_hsl(h, 40, 90),
        accent_foreground=_hsl(h, 60, 25),
        destructive=LIGHT_DESTRUCTIVE,
        destructive_foreground=DESTRUCTIVE_FOREGROUND,
        border=_hsl(h, 15, 85),
        input=_hsl(h, 15, 85),
        ring=_hsl(h, base.s, base.l),
    )

    dark = ColorPalette(
        background=_hsl(h, 20, 6),
        foreground=_hsl(h, 15, 95),
        card=_hsl(h, 20, 8),
        card_foreground=_hsl(h, 15, 95),
        popover=_hsl(h, 20, 8),
        popover_foreground=_hsl(h, 15, 95),
        primary=_hsl(h, _clamp(base.s - 10), _clamp(base.l + 25)),
        primary_foreground=_hsl(h, 30, 10),
        secondary=_hsl(h, 25, 18),
        secondary_foreground=_hsl(h, 20, 90),
        muted=_hsl(h, 20, 18),
        muted_foreground=_hsl(h, 15, 60),
        accent=_hsl(h, 30, 20),
        accent_foreground=_hsl(h, 50, 85),
        destructive=DARK_DESTRUCTIVE,
        destructive_foreground=DESTRUCTIVE_FOREGROUND,
        border=_hsl(h, 20, 20),
        input=_hsl(h, 20, 20),
        ring=_hsl(h, _clamp(base.s - 10), _clamp(base.l + 30)),
    )

    return ThemePalettes(light=light, dark=dark)


def css_variable_name(role: str) -> str:
    """Map a palette role to its CSS custom property (card_foreground -> --card-foreground)."""
    return "--" + role.replace("_", "-")


def _css_block(selector: str, palette: ColorPalette) -> str:
    lines = [f"  {css_variable_name(role)}: {value};" for role, value in palette.model_dump().items()]
    return selector + " {\n" + "\n".join(lines) + "\n}"


def palette_to_css(palettes: ThemePalettes) -> str:
    """Render palettes as CSS: light roles on :root, dark roles on .dark."""
    return _css_block(":root", palettes.light) + "\n" + _css_block(".dark", palettes.dark) + "\n"
