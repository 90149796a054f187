from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from PIL import Image, ImageDraw, ImageFont, ImageFilter
import math
import os

from . import lines_for
from ..dashboard import DashboardData
from ..widgets.base import WidgetResult

RGB = tuple[int, int, int]

@dataclass(frozen=True)
class Palette:
    background: RGB
    text: RGB
    muted: RGB
    outline: RGB
    alert: RGB

    @classmethod
    def from_theme(cls, theme: dict) -> "Palette":
        def rgb(key: str, default: str) -> RGB:
            c = str(theme.get(key, default)).lstrip("#")
            return tuple(int(c[i:i + 2], 16) for i in (0, 2, 4))

        return cls(
            background=rgb("background", "#020402"),
            text=rgb("foreground", "#00ff66"),
            muted=rgb("foreground_dim", "#00aa44"),
            outline=rgb("panel_border", "#00aa44"),
            alert=rgb("alert", "#ff3355"),
        )

def _font(theme: dict, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    name = os.path.expanduser(theme["font_path"]) if theme.get("font_path") else f"{theme.get('font_family', 'DejaVuSansMono')}.ttf"
    try:
        return ImageFont.truetype(name, size=size)
    except OSError:
        return ImageFont.load_default()

@dataclass(frozen=True)
class Grid:
    """Panel boxes below a header strip of height ``top``."""
    top: int
    pad: int
    gap: int
    cols: int
    panel_w: int
    panel_h: int

    @classmethod
    def fit(cls, size: tuple[int, int], cols: int, count: int, header_h: int) -> "Grid":
        width, height = size
        pad = max(24, width // 80)
        gap = max(18, width // 120)
        cols = max(1, cols)
        rows = max(1, math.ceil(max(1, count) / cols))
        top = pad + header_h
        return cls(
            top=top,
            pad=pad,
            gap=gap,
            cols=cols,
            panel_w=(width - 2 * pad - (cols - 1) * gap) // cols,
            panel_h=(height - top - pad - (rows - 1) * gap) // rows,
        )

    def panel(self, index: int) -> tuple[int, int, int, int]:
        row, col = divmod(index, self.cols)
        left = self.pad + col * (self.panel_w + self.gap)
        top = self.top + row * (self.panel_h + self.gap)
        return left, top, left + self.panel_w, top + self.panel_h

def _glow(img: Image.Image, pos: tuple[int, int], text: str, font, color: RGB, halo_color: RGB, blur: int = 6) -> None:
    left, top = pos
    draw = ImageDraw.Draw(img)
    right, bottom = draw.textbbox((0, 0), text, font=font)[2:]
    margin = blur * 2
    halo = Image.new("RGBA", (right + 2 * margin, bottom + 2 * margin), (0, 0, 0, 0))
    ImageDraw.Draw(halo).text((margin, margin), text, font=font, fill=(*halo_color, 120))
    halo = halo.filter(ImageFilter.GaussianBlur(radius=blur))
    img.paste(halo, (left - margin, top - margin), halo)
    draw.text(pos, text, font=font, fill=color)

def _crt(img: Image.Image, darken: int = 18) -> Image.Image:
    lines = Image.new("RGBA", img.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(lines)
    width, height = img.size
    for row in range(0, height, 4):
        draw.rectangle([0, row, width, row + 1], fill=(0, 0, 0, darken))
    return Image.alpha_composite(img.convert("RGBA"), lines)

def _sparkline(draw: ImageDraw.ImageDraw, area: tuple[int, int, int, int], res: WidgetResult, color: RGB) -> None:
    pts = res.data.plottable() if res.ok and res.data is not None else []
    if len(pts) < 2:
        return
    left, top, right, bottom = area
    values = [p for _, p in pts]
    lo, hi = min(values), max(values)
    span = (hi - lo) or 1.0
    step = (right - left) / (len(values) - 1)
    draw.line(
        [(left + i * step, bottom - (v - lo) / span * (bottom - top)) for i, v in enumerate(values)],
        fill=color,
        width=2,
    )

def _panel(img: Image.Image, box: tuple[int, int, int, int], res: WidgetResult, colors: Palette, title_font, body_font, line_h: int) -> None:
    left, top, right, bottom = box
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle(box, radius=18, outline=colors.alert if not res.ok else colors.outline, width=2)
    _glow(img, (left + 16, top + 12), res.title, title_font, colors.text if res.ok else colors.alert, colors.text)
    if res.stale and res.data is not None:
        draw.ellipse([right - 28, top + 18, right - 16, top + 30], fill=colors.muted)

    lines = lines_for(res)
    body_top = top + 58
    if res.type == "chart":
        # the plot takes the lower part of the panel, text stays on top
        keep = max(1, min(len(lines), (bottom - body_top) // (2 * line_h)))
        _sparkline(draw, (left + 16, body_top + keep * line_h + 12, right - 16, bottom - 16), res, colors.text)
        lines = lines[:keep]

    y = body_top
    for text in lines:
        if y + line_h > bottom - 8:
            break
        draw.text((left + 16, y), text, font=body_font, fill=colors.muted)
        y += line_h

def render(
    out_path: Path,
    dash: DashboardData,
    resolution: tuple[int, int],
    columns: int,
    theme: dict,
) -> Path:
    w, h = resolution
    colors = Palette.from_theme(theme)
    title_font = _font(theme, max(20, w // 90))
    body_font = _font(theme, max(16, w // 120))
    small_font = _font(theme, max(14, w // 140))
    line_h = max(22, w // 88)

    img = Image.new("RGBA", (w, h), (*colors.background, 255))
    grid = Grid.fit(resolution, columns, len(dash.results), header_h=line_h + 12)

    failed = sum(1 for r in dash.results if not r.ok)
    status = f"{len(dash.results)} widgets"
    if failed:
        status += f", {failed} failing"
    ImageDraw.Draw(img).text(
        (grid.pad, grid.pad // 2),
        f"{status}  |  {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        font=small_font,
        fill=colors.alert if failed else colors.muted,
    )

    for i, res in enumerate(dash.results):
        _panel(img, grid.panel(i), res, colors, title_font, body_font, line_h)

    img = _crt(img)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    img.convert("RGB").save(out_path, format="PNG")
    return out_path
