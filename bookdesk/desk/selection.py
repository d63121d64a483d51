"""Explicit selection of availability ids, shared by reference between views."""

from typing import Iterable, Iterator


class SelectionSet:
    """
    Ordered set of selected ids.

    The calendar workflow owns one instance and passes it to the list and
    bulk editor, which read and change it directly.
    """

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: dict[str, None] = dict.fromkeys(ids)

    def add(self, item_id: str) -> None:
        self._ids[item_id] = None

    def remove(self, item_id: str) -> None:
        self._ids.pop(item_id, None)

    def toggle(self, item_id: str) -> bool:
        """Flip one id; returns True if it is now selected."""
        if item_id in self._ids:
            del self._ids[item_id]
            return False
        self._ids[item_id] = None
        return True

    def select_all(self, visible_ids: Iterable[str]) -> None:
        for item_id in visible_ids:
            self._ids[item_id] = None

    def deselect_all(self, visible_ids: Iterable[str]) -> None:
        for item_id in visible_ids:
            self._ids.pop(item_id, None)

    def toggle_all(self, visible_ids: Iterable[str]) -> None:
        """Header checkbox: select every visible id, or clear them if all are selected."""
        visible = list(visible_ids)
        if self.all_selected(visible):
            self.deselect_all(visible)
        else:
            self.select_all(visible)

    def clear(self) -> None:
        self._ids.clear()

    def all_selected(self, visible_ids: Iterable[str]) -> bool:
        visible = list(visible_ids)
        return bool(visible) and all(i in self._ids for i in visible)

    def some_selected(self, visible_ids: Iterable[str]) -> bool:
        """True for the indeterminate header state: some, but not all, visible ids."""
        visible = list(visible_ids)
        hits = sum(1 for i in visible if i in self._ids)
        return 0 < hits < len(visible)

    def ids(self) -> list[str]:
        return list(self._ids)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __bool__(self) -> bool:
        return bool(self._ids)
