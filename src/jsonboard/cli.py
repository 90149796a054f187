from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

from .config import Config, load_config
from .dashboard import Dashboard, DashboardData, collect_all
from .errors import DashboardError
from .fields import describe_fields, filter_fields
from .renderers import lines_for, render_with
from .storage import JsonFileStorage
from .store import WidgetStore
from .transport import RequestsTransport, probe, resolve_endpoint
from .widgets.base import WIDGET_TYPES

logger = logging.getLogger(__name__)

def _store(cfg: Config) -> WidgetStore:
    return WidgetStore(JsonFileStorage(cfg.storage_dir), key=cfg.storage_key)

def _collect(cfg: Config, store: WidgetStore) -> DashboardData:
    transport = RequestsTransport(timeout=cfg.timeout)
    return asyncio.run(collect_all(store.widgets, transport, cfg.base_url, cfg.api_key))

def _print_dashboard(dash: DashboardData) -> None:
    for res in dash.results:
        print(f"== {res.title} [{res.type}]")
        for ln in lines_for(res):
            print(f"   {ln}")

def cmd_fields(cfg: Config, args: argparse.Namespace) -> int:
    endpoint = resolve_endpoint(args.endpoint, cfg.base_url)
    payload = probe(endpoint, args.key or cfg.api_key, cfg.timeout)
    infos = filter_fields(describe_fields(payload), args.search, args.arrays_only)
    for f in infos:
        print(f"{f.path}\t{f.kind}")
    print(f"{len(infos)} fields found", file=sys.stderr)
    return 0

def cmd_add(cfg: Config, args: argparse.Namespace) -> int:
    store = _store(cfg)
    seed = None
    if args.seed:
        seed = probe(resolve_endpoint(args.endpoint, cfg.base_url), args.key or cfg.api_key, cfg.timeout)
    widget_id = store.add({
        "type": args.type,
        "title": args.title,
        "endpoint": args.endpoint,
        "fields": args.field or [],
        "refresh_interval": cfg.default_refresh if args.refresh is None else args.refresh,
        "auth_key": args.key,
        "seed_response": seed,
    })
    print(widget_id)
    return 0

def cmd_list(cfg: Config, args: argparse.Namespace) -> int:
    for i, w in enumerate(_store(cfg).widgets, 1):
        cached = " (cached)" if w.seed_response is not None else ""
        print(f"{i:>2}. {w.id}  {w.type:<5}  {w.title}  <- {w.endpoint}  [{', '.join(w.fields)}] every {w.refresh_interval}s{cached}")
    return 0

def cmd_remove(cfg: Config, args: argparse.Namespace) -> int:
    _store(cfg).remove(args.id)
    return 0

def cmd_move(cfg: Config, args: argparse.Namespace) -> int:
    _store(cfg).reorder(args.source, args.target)
    return 0

def cmd_update(cfg: Config, args: argparse.Namespace) -> int:
    store = _store(cfg)
    if store.get(args.id) is None:
        print(f"No widget with id {args.id}", file=sys.stderr)
        return 1
    changes = {
        k: v for k, v in {
            "type": args.type,
            "title": args.title,
            "endpoint": args.endpoint,
            "fields": args.field,
            "refresh_interval": args.refresh,
            "auth_key": args.key,
        }.items()
        if v is not None
    }
    store.update_config(args.id, changes)
    return 0

def cmd_show(cfg: Config, args: argparse.Namespace) -> int:
    dash = _collect(cfg, _store(cfg))
    _print_dashboard(dash)
    return 0 if all(r.ok for r in dash.results) else 1

def cmd_render(cfg: Config, args: argparse.Namespace) -> int:
    dash = _collect(cfg, _store(cfg))
    out = render_with(
        args.renderer or cfg.renderer_kind,
        args.out.expanduser() if args.out else cfg.output_path,
        dash,
        cfg.resolution,
        cfg.columns,
        cfg.theme,
        cfg.web_renderer,
    )
    print(out)
    return 0

async def _watch(cfg: Config, renderer: str) -> None:
    changed = asyncio.Event()
    board = Dashboard(
        _store(cfg),
        RequestsTransport(timeout=cfg.timeout),
        base_url=cfg.base_url,
        default_key=cfg.api_key,
        on_change=changed.set,
    )
    board.start()
    try:
        while True:
            await changed.wait()
            changed.clear()
            dash = board.results()
            if any(r.stale for r in dash.results):
                continue
            await asyncio.to_thread(
                render_with, renderer, cfg.output_path, dash,
                cfg.resolution, cfg.columns, cfg.theme, cfg.web_renderer,
            )
            logger.info(f"Rendered {cfg.output_path}")
    finally:
        board.stop()

def cmd_watch(cfg: Config, args: argparse.Namespace) -> int:
    try:
        asyncio.run(_watch(cfg, args.renderer or cfg.renderer_kind))
    except KeyboardInterrupt:
        pass
    return 0

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="jsonboard")
    ap.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    ap.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("fields", help="Fetch an endpoint once and list its field paths")
    p.add_argument("endpoint")
    p.add_argument("--key", help="x-api-key to send")
    p.add_argument("--search", default="", help="Only paths containing this text")
    p.add_argument("--arrays-only", action="store_true", help="Only paths that hold arrays")
    p.set_defaults(func=cmd_fields)

    p = sub.add_parser("add", help="Add a widget")
    p.add_argument("--type", choices=WIDGET_TYPES, default="card")
    p.add_argument("--title", required=True)
    p.add_argument("--endpoint", required=True)
    p.add_argument("--field", action="append", help="Field path; repeat for several")
    p.add_argument("--refresh", type=int, help="Refresh interval in seconds, 0 to disable")
    p.add_argument("--key", help="x-api-key to send")
    p.add_argument("--seed", action="store_true", help="Fetch once now and reuse the response for the first render")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("list", help="List widgets in display order")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("remove", help="Remove a widget")
    p.add_argument("id")
    p.set_defaults(func=cmd_remove)

    p = sub.add_parser("move", help="Move a widget to another widget's position")
    p.add_argument("source")
    p.add_argument("target")
    p.set_defaults(func=cmd_move)

    p = sub.add_parser("update", help="Change some settings of a widget")
    p.add_argument("id")
    p.add_argument("--type", choices=WIDGET_TYPES)
    p.add_argument("--title")
    p.add_argument("--endpoint")
    p.add_argument("--field", action="append")
    p.add_argument("--refresh", type=int)
    p.add_argument("--key")
    p.set_defaults(func=cmd_update)

    p = sub.add_parser("show", help="Fetch every widget once and print it")
    p.set_defaults(func=cmd_show)

    for name, func, help_text in (
        ("render", cmd_render, "Fetch every widget once and render an image"),
        ("watch", cmd_watch, "Keep widgets refreshing and re-render on every change"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--renderer", choices=["pillow", "web"], help="Override renderer.kind from config")
        p.set_defaults(func=func)
    sub.choices["render"].add_argument("--out", type=Path, help="Override output.path from config")

    return ap

def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = load_config(args.config)
    try:
        code = args.func(cfg, args)
    except (DashboardError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        code = 2
    sys.exit(code)
