from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Callable, Iterable

from .fetch import FetchLifecycleManager, FetchState
from .store import WidgetStore, Widgets
from .transport import Transport, resolve_endpoint
from .widgets.base import WidgetConfig, WidgetResult

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class DashboardData:
    results: list[WidgetResult]

def result_for(widget: WidgetConfig, state: FetchState) -> WidgetResult:
    return WidgetResult(
        id=widget.id,
        type=widget.type,
        title=widget.title,
        data=state.data,
        ok=not state.failed,
        error=state.message,
        stale=state.loading,
        updated_at=state.last_updated_at,
    )

def _manager_for(widget: WidgetConfig, transport: Transport | None, refresh: bool) -> FetchLifecycleManager:
    return FetchLifecycleManager(
        widget.type,
        widget.fields,
        seed=widget.seed_response,
        transport=transport,
        refresh_interval=widget.refresh_interval if refresh else 0,
        name=f"{widget.title} ({widget.id})",
    )

async def collect_all(
    widgets: Iterable[WidgetConfig],
    transport: Transport | None = None,
    base_url: str | None = None,
    default_key: str | None = None,
) -> DashboardData:
    """Fetch every widget once, concurrently, and return the settled results."""
    widgets = list(widgets)
    managers = [_manager_for(w, transport, refresh=False) for w in widgets]
    for w, m in zip(widgets, managers):
        m.configure(resolve_endpoint(w.endpoint, base_url), w.auth_key or default_key)
    try:
        states = await asyncio.gather(*(m.wait() for m in managers))
    finally:
        for m in managers:
            m.close()
    return DashboardData(results=[result_for(w, s) for w, s in zip(widgets, states)])

class Dashboard:
    """Keeps one FetchLifecycleManager per widget in a store, in step with it."""

    def __init__(
        self,
        store: WidgetStore,
        transport: Transport | None = None,
        base_url: str | None = None,
        default_key: str | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self._store = store
        self._transport = transport
        self._base_url = base_url
        self._default_key = default_key
        self._on_change = on_change
        self._managers: dict[str, FetchLifecycleManager] = {}
        self._configs: dict[str, WidgetConfig] = {}
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> None:
        self._sync(self._store.widgets)
        self._unsubscribe = self._store.subscribe(self._sync)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for m in self._managers.values():
            m.close()
        self._managers.clear()
        self._configs.clear()

    def manager(self, widget_id: str) -> FetchLifecycleManager | None:
        return self._managers.get(widget_id)

    def results(self) -> DashboardData:
        return DashboardData(results=[
            result_for(w, self._managers[w.id].state)
            for w in self._store.widgets
            if w.id in self._managers
        ])

    def _configure(self, manager: FetchLifecycleManager, widget: WidgetConfig) -> None:
        manager.configure(resolve_endpoint(widget.endpoint, self._base_url), widget.auth_key or self._default_key)

    def _changed(self, _state: FetchState) -> None:
        if self._on_change is not None:
            self._on_change()

    def _sync(self, widgets: Widgets) -> None:
        current = {w.id: w for w in widgets}
        for wid in [wid for wid in self._managers if wid not in current]:
            logger.debug(f"Tearing down widget {wid}")
            self._managers.pop(wid).close()
            self._configs.pop(wid, None)

        for w in widgets:
            old = self._configs.get(w.id)
            self._configs[w.id] = w
            m = self._managers.get(w.id)
            if m is None:
                m = self._managers[w.id] = _manager_for(w, self._transport, refresh=True)
                m.subscribe(self._changed)
                self._configure(m, w)
                continue
            if (old.type, old.fields) != (w.type, w.fields):
                m.set_fields(w.type, w.fields)
            if (old.endpoint, old.auth_key) != (w.endpoint, w.auth_key):
                self._configure(m, w)
            if old.refresh_interval != w.refresh_interval:
                m.set_refresh_interval(w.refresh_interval)

        if self._on_change is not None:
            self._on_change()
