from __future__ import annotations

from dataclasses import replace
import logging
from typing import Any, Callable, Mapping
import uuid

from .storage import KeyValueStorage
from .widgets.base import WidgetConfig, config_keys

logger = logging.getLogger(__name__)

STORAGE_KEY = "jsonboard-dashboard"

Widgets = tuple[WidgetConfig, ...]
Listener = Callable[[Widgets], None]


def _new_id() -> str:
    return uuid.uuid4().hex


class WidgetStore:
    """Ordered, persisted collection of widget configurations.

    Every mutation writes the whole collection to storage before it becomes
    visible, so observers never see a state that was not persisted. If the
    write fails the collection is left as it was.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = STORAGE_KEY,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._storage = storage
        self._key = key
        self._new_id = id_factory
        self._listeners: list[Listener] = []
        self._widgets: Widgets = self._load()

    @property
    def widgets(self) -> Widgets:
        return self._widgets

    def get(self, widget_id: str) -> WidgetConfig | None:
        for w in self._widgets:
            if w.id == widget_id:
                return w
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add(self, config: Mapping[str, Any]) -> str:
        data = dict(config)
        if "id" in data:
            raise ValueError("Widget ids are assigned by the store")
        widget_id = self._new_id()
        widget = WidgetConfig.from_dict({**data, "id": widget_id})
        self._commit(self._widgets + (widget,))
        logger.info(f"Added {widget.type} widget {widget.title!r} ({widget_id})")
        return widget_id

    def remove(self, widget_id: str) -> None:
        remaining = tuple(w for w in self._widgets if w.id != widget_id)
        if len(remaining) == len(self._widgets):
            return
        self._commit(remaining)
        logger.info(f"Removed widget {widget_id}")

    def reorder(self, source_id: str, target_id: str) -> Widgets:
        """Move ``source_id`` to the position ``target_id`` occupies now."""
        ids = [w.id for w in self._widgets]
        if source_id == target_id or source_id not in ids or target_id not in ids:
            return self._widgets
        widgets = list(self._widgets)
        moved = widgets.pop(ids.index(source_id))
        widgets.insert(ids.index(target_id), moved)
        self._commit(tuple(widgets))
        logger.info(f"Moved widget {source_id} to position {ids.index(target_id)}")
        return self._widgets

    def update_config(self, widget_id: str, changes: Mapping[str, Any]) -> None:
        """Shallow-merge ``changes`` into one widget; unknown ids are ignored."""
        idx = next((i for i, w in enumerate(self._widgets) if w.id == widget_id), None)
        if idx is None:
            return
        changes = dict(changes)
        if changes.pop("id", widget_id) != widget_id:
            raise ValueError("Widget ids cannot be changed")
        unknown = set(changes) - config_keys()
        if unknown:
            raise ValueError(f"Unknown widget config keys: {sorted(unknown)}")
        widgets = list(self._widgets)
        widgets[idx] = replace(widgets[idx], **changes)
        self._commit(tuple(widgets))
        logger.info(f"Updated widget {widget_id}: {sorted(changes)}")

    def clear(self) -> None:
        self._storage.delete(self._key)
        self._publish(())

    def _commit(self, widgets: Widgets) -> None:
        self._storage.set(self._key, {"widgets": [w.to_dict() for w in widgets]})
        self._publish(widgets)

    def _publish(self, widgets: Widgets) -> None:
        self._widgets = widgets
        for listener in list(self._listeners):
            listener(widgets)

    def _load(self) -> Widgets:
        try:
            record = self._storage.get(self._key)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read dashboard state {self._key!r}, starting empty: {e}")
            return ()
        if record is None:
            return ()

        try:
            widgets = [WidgetConfig.from_dict(w) for w in record["widgets"]]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed dashboard state {self._key!r}: {e}")
            return ()

        unique: dict[str, WidgetConfig] = {}
        for w in widgets:
            unique.setdefault(w.id, w)
        return tuple(unique.values())
