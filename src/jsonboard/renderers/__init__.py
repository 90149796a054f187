from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..dashboard import DashboardData
from ..pagination import ROWS_PER_PAGE, paginate, table_headers
from ..widgets.base import WidgetResult

def fmt_value(v: Any) -> str:
    if v is None:
        return "-"
    if isinstance(v, (dict, list)):
        return json.dumps(v)
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)

def _table_lines(rows: list, per_page: int) -> list[str]:
    headers = table_headers(rows)
    page = paginate(rows, 1, per_page)
    out = []
    if headers:
        out.append("  ".join(h.replace("_", " ").upper() for h in headers))
    for row in page.rows:
        if isinstance(row, dict):
            out.append("  ".join(fmt_value(row.get(h)) for h in headers))
        else:
            out.append(fmt_value(row))
    out.append(f"Page {page.number} of {page.total_pages} ({page.total_rows} rows)")
    return out

def _chart_lines(series: Any) -> list[str]:
    pts = series.plottable()
    if not pts:
        return ["No plottable points"]
    values = [p for _, p in pts]
    return [
        f"{len(pts)} points",
        f"{pts[0][0]}: {pts[0][1]:g}",
        f"{pts[-1][0]}: {pts[-1][1]:g}",
        f"min {min(values):g}  max {max(values):g}",
    ]

def lines_for(res: WidgetResult, per_page: int = ROWS_PER_PAGE) -> list[str]:
    """Plain-text body of one widget, shared by every renderer."""
    if not res.ok:
        out = ["ERROR"]
        if res.error:
            out.append(res.error[:120])
        # the last good data, if any, is still worth showing
        if res.data is not None:
            out.extend(_body_lines(res, per_page))
        return out
    if res.data is None:
        return ["Loading..." if res.stale else "No Data"]
    return _body_lines(res, per_page)

def _body_lines(res: WidgetResult, per_page: int) -> list[str]:
    if res.type == "card":
        lines = [f"{k}: {fmt_value(v)}" for k, v in res.data.items()]
    elif res.type == "table":
        lines = _table_lines(res.data, per_page) if res.data else ["No Data"]
    elif res.type == "chart":
        lines = _chart_lines(res.data)
    else:
        lines = [str(res.data)[:120]]

    if res.updated_at is not None:
        lines.append(f"Updated {res.updated_at.strftime('%H:%M:%S')}")
    return lines

def render_with(
    kind: str,
    out_path: Path,
    dash: DashboardData,
    resolution: tuple[int, int],
    columns: int,
    theme: dict,
    web_cfg: dict,
) -> Path:
    kind = kind.lower().strip()
    # imported lazily so that text output does not need Pillow or Playwright
    if kind == "pillow":
        from . import render_pillow
        return render_pillow.render(out_path, dash, resolution, columns, theme)
    if kind == "web":
        from . import render_web
        return render_web.render(out_path, dash, resolution, columns, theme, web_cfg)
    raise ValueError(f"Unknown renderer: {kind}")
