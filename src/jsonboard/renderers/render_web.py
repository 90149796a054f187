from __future__ import annotations

from pathlib import Path
import json
from playwright.sync_api import sync_playwright

from . import lines_for
from ..dashboard import DashboardData
from ..widgets.base import WidgetResult

THEME_VARS = {
    "--bg": ("background", "#020402"),
    "--fg": ("foreground", "#00ff66"),
    "--fg-dim": ("foreground_dim", "#00aa44"),
    "--border": ("panel_border", "#00aa44"),
    "--alert": ("alert", "#ff3355"),
}

PAGE = """<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>jsonboard</title>
<style>
:root {{ {theme_vars} --font: ui-monospace, Menlo, "DejaVu Sans Mono", monospace; }}
body {{ margin: 0; width: {width}px; height: {height}px; overflow: hidden;
       background: var(--bg); color: var(--fg); font-family: var(--font); }}
#board {{ box-sizing: border-box; width: 100%; height: 100%; padding: {pad}px;
          display: grid; gap: {gap}px; grid-template-columns: repeat({cols}, 1fr); }}
.panel {{ box-sizing: border-box; display: flex; flex-direction: column; padding: 16px;
          border: 2px solid var(--border); border-radius: 22px; overflow: hidden; }}
.panel.failed {{ border-color: var(--alert); }}
.panel h2 {{ margin: 0 0 10px 0; font-size: 22px; font-weight: normal; }}
.panel.failed h2 {{ color: var(--alert); }}
.panel.stale h2::after {{ content: " \\25CF"; color: var(--fg-dim); }}
.row {{ color: var(--fg-dim); font-size: 16px; line-height: 1.35; white-space: pre; }}
svg {{ flex: 1; margin-top: 12px; }}
polyline {{ fill: none; stroke: var(--fg); stroke-width: 2; }}
</style>
</head>
<body>
<main id="board"></main>
<script>
const SVG = "http://www.w3.org/2000/svg";

function sparkline(points) {{
  const svg = document.createElementNS(SVG, "svg");
  svg.setAttribute("viewBox", "0 0 100 100");
  svg.setAttribute("preserveAspectRatio", "none");
  const lo = Math.min(...points), hi = Math.max(...points);
  const span = (hi - lo) || 1;
  const step = 100 / (points.length - 1);
  const line = document.createElementNS(SVG, "polyline");
  line.setAttribute("vector-effect", "non-scaling-stroke");
  line.setAttribute("points", points.map((v, i) => `${{i * step}},${{100 - (v - lo) / span * 100}}`).join(" "));
  svg.appendChild(line);
  return svg;
}}

const board = document.getElementById("board");
for (const w of {widgets}) {{
  const panel = document.createElement("section");
  panel.classList.add("panel");
  if (!w.ok) panel.classList.add("failed");
  if (w.stale) panel.classList.add("stale");
  const heading = panel.appendChild(document.createElement("h2"));
  heading.textContent = w.title;
  for (const text of w.lines) {{
    const row = panel.appendChild(document.createElement("div"));
    row.className = "row";
    row.textContent = text;
  }}
  if (w.points.length > 1) panel.appendChild(sparkline(w.points));
  board.appendChild(panel);
}}
</script>
</body>
</html>
"""

def _payload(res: WidgetResult) -> dict:
    points = []
    if res.type == "chart" and res.ok and res.data is not None:
        # NaN is not valid JSON; unplottable points are simply left out
        points = [p for _, p in res.data.plottable()]
    return {
        "title": res.title,
        "ok": res.ok,
        "stale": res.stale,
        "lines": lines_for(res),
        "points": points,
    }

def page_html(dash: DashboardData, resolution: tuple[int, int], columns: int, theme: dict) -> str:
    width, height = resolution
    widgets = json.dumps([_payload(r) for r in dash.results])
    return PAGE.format(
        theme_vars=" ".join(f"{var}: {theme.get(key, default)};" for var, (key, default) in THEME_VARS.items()),
        width=width,
        height=height,
        pad=max(24, width // 80),
        gap=max(18, width // 120),
        cols=max(1, columns),
        # keep "</script>" inside values from closing the script element
        widgets=widgets.replace("</", "<\\/"),
    )

def _screenshot(page_path: Path, out_path: Path, resolution: tuple[int, int], web_cfg: dict) -> None:
    width, height = resolution
    with sync_playwright() as pw:
        browser = getattr(pw, str(web_cfg.get("browser", "chromium"))).launch(
            headless=bool(web_cfg.get("headless", True)),
        )
        try:
            page = browser.new_page(
                viewport={"width": width, "height": height},
                device_scale_factor=float(web_cfg.get("viewport_device_scale_factor", 1)),
            )
            page.goto(page_path.as_uri())
            page.wait_for_timeout(int(web_cfg.get("settle_ms", 250)))
            page.screenshot(path=str(out_path), full_page=False)
        finally:
            browser.close()

def render(
    out_path: Path,
    dash: DashboardData,
    resolution: tuple[int, int],
    columns: int,
    theme: dict,
    web_cfg: dict,
) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    page_path = out_path.with_suffix(".html")
    page_path.write_text(page_html(dash, resolution, columns, theme), encoding="utf-8")
    _screenshot(page_path, out_path, resolution, web_cfg)
    return out_path
