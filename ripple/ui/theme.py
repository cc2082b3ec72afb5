"""Ripple theme system: color palette and markdown element styles."""

from dataclasses import dataclass, field

from rich.style import Style


@dataclass(frozen=True)
class ColorPalette:
    """Core UI color palette."""

    text_bright: str = "#e8e8f0"
    text: str = "#b8b8cc"
    text_dim: str = "#6a6a80"
    text_muted: str = "#4a4a60"
    surface: str = "#1c1c26"
    border: str = "#363648"
    heading: str = "#00d4e5"
    inline_code: str = "#00d4e5"
    link: str = "#5a9cf0"
    quote: str = "#8a8aa0"
    error: str = "#e55a6e"


@dataclass(frozen=True)
class RippleTheme:
    """Palette bound to the styles used for each markdown element."""

    palette: ColorPalette = field(default_factory=ColorPalette)

    def heading(self, level: int) -> Style:
        """Headings are bold; level 1 is also underlined."""
        if level == 1:
            return Style.parse(f"bold underline {self.palette.heading}")
        if level == 2:
            return Style.parse(f"bold {self.palette.heading}")
        return Style.parse(f"bold {self.palette.text_bright}")

    @property
    def bold(self) -> Style:
        return Style.parse(f"bold {self.palette.text_bright}")

    @property
    def italic(self) -> Style:
        return Style(italic=True)

    @property
    def strike(self) -> Style:
        return Style(strike=True)

    @property
    def code(self) -> Style:
        return Style.parse(f"{self.palette.inline_code} on {self.palette.surface}")

    @property
    def link(self) -> Style:
        return Style.parse(f"underline {self.palette.link}")

    @property
    def marker(self) -> Style:
        return Style.parse(self.palette.text_dim)

    @property
    def quote(self) -> Style:
        return Style.parse(f"italic {self.palette.quote}")

    @property
    def rule(self) -> Style:
        return Style.parse(f"dim {self.palette.border}")


DEFAULT_THEME = RippleTheme()
