"""
Selection Controller

Tracks the set of selected record ids under list-click semantics:

- Plain click: the selection becomes ``{id}``, or empty when ``id`` was
  already selected. The anchor moves to ``id``.
- Ctrl/Cmd click: toggle ``id`` only. The anchor moves to ``id``.
- Shift click: add the inclusive visible range between the anchor and
  ``id``. The anchor stays where it was.
- Checkbox toggle: toggle ``id`` only, never the plain-click replace.

Only ids that have been observed as selectable (through ``set_items`` or
a visible id list) can ever be selected; anything else is ignored.
Every operation that changes the selection notifies the observer.
"""

from typing import Callable, Iterable, Optional, Sequence, TypeVar

import structlog

logger = structlog.get_logger(__name__)

SelectionListener = Callable[[frozenset], None]

T = TypeVar("T")


class SelectionController:
    """
    Multi-select state for one list of records.

    Args:
        item_ids: Ordered ids of all selectable items
        on_selection_change: Called with the new selection after each change
    """

    def __init__(
        self,
        item_ids: Iterable[str] = (),
        on_selection_change: Optional[SelectionListener] = None,
    ):
        self._items: tuple[str, ...] = ()
        self._observed: set[str] = set()
        self._selected: frozenset[str] = frozenset()
        self._anchor: Optional[str] = None
        self._on_selection_change = on_selection_change
        self.set_items(item_ids)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def selected(self) -> frozenset[str]:
        return self._selected

    @property
    def anchor(self) -> Optional[str]:
        return self._anchor

    @property
    def item_ids(self) -> tuple[str, ...]:
        return self._items

    @property
    def count(self) -> int:
        return len(self._selected)

    @property
    def has_selection(self) -> bool:
        return bool(self._selected)

    def is_selected(self, item_id: str) -> bool:
        return item_id in self._selected

    def set_items(self, item_ids: Iterable[str]) -> None:
        """Replace the ordered item list; the selection itself is kept."""
        self._items = tuple(dict.fromkeys(item_ids))
        self._observed.update(self._items)

    def _observe(self, ids: Iterable[str]) -> list[str]:
        ordered = list(dict.fromkeys(ids))
        self._observed.update(ordered)
        return ordered

    def _update(self, selection: Iterable[str]) -> frozenset[str]:
        self._selected = frozenset(i for i in selection if i in self._observed)
        if self._on_selection_change:
            self._on_selection_change(self._selected)
        return self._selected

    # -------------------------------------------------------------------------
    # Click semantics
    # -------------------------------------------------------------------------

    def click(self, item_id: str, visible_ids: Sequence[str] = ()) -> frozenset[str]:
        self._observe(visible_ids)
        if item_id not in self._observed:
            return self._selected
        self._anchor = item_id
        if item_id in self._selected:
            return self._update(())
        return self._update((item_id,))

    def ctrl_click(self, item_id: str) -> frozenset[str]:
        if item_id not in self._observed:
            return self._selected
        self._anchor = item_id
        return self._update(self._selected ^ {item_id})

    def shift_click(self, item_id: str, visible_ids: Sequence[str]) -> frozenset[str]:
        """
        Add the visible range between the anchor and ``item_id``.

        Falls back to a plain click when there is no anchor or when the
        anchor or ``item_id`` is not in ``visible_ids``.
        """
        visible = self._observe(visible_ids)
        if self._anchor is None or self._anchor not in visible or item_id not in visible:
            return self.click(item_id, visible)

        start, end = sorted((visible.index(self._anchor), visible.index(item_id)))
        return self._update(self._selected | set(visible[start:end + 1]))

    def checkbox_toggle(self, item_id: str) -> frozenset[str]:
        if item_id not in self._observed:
            return self._selected
        self._anchor = item_id
        return self._update(self._selected ^ {item_id})

    def handle_click(
        self,
        item_id: str,
        visible_ids: Sequence[str],
        shift: bool = False,
        ctrl: bool = False,
    ) -> frozenset[str]:
        """Dispatch on modifier keys; shift wins over ctrl."""
        if shift:
            return self.shift_click(item_id, visible_ids)
        if ctrl:
            self._observe(visible_ids)
            return self.ctrl_click(item_id)
        return self.click(item_id, visible_ids)

    # -------------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------------

    def select_all(self) -> frozenset[str]:
        return self._update(self._items)

    def select_visible(self, visible_ids: Sequence[str]) -> frozenset[str]:
        visible = self._observe(visible_ids)
        return self._update(self._selected | set(visible))

    def deselect_visible(self, visible_ids: Sequence[str]) -> frozenset[str]:
        return self._update(self._selected - set(visible_ids))

    def toggle_visible(self, visible_ids: Sequence[str]) -> frozenset[str]:
        """Deselect the visible ids when all are selected, else select them."""
        if self.all_visible_selected(visible_ids):
            return self.deselect_visible(visible_ids)
        return self.select_visible(visible_ids)

    def clear(self) -> frozenset[str]:
        self._anchor = None
        return self._update(())

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def all_visible_selected(self, visible_ids: Sequence[str]) -> bool:
        if not visible_ids:
            return False
        return all(i in self._selected for i in visible_ids)

    def some_visible_selected(self, visible_ids: Sequence[str]) -> bool:
        """True when some, but not all, visible ids are selected."""
        if not visible_ids:
            return False
        hits = sum(1 for i in visible_ids if i in self._selected)
        return 0 < hits < len(visible_ids)

    def selected_items(self, items: Iterable[T], key: Callable[[T], str] = lambda item: item.id) -> list[T]:
        return [item for item in items if key(item) in self._selected]
