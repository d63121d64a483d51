"""Tests for the shared selection set."""

from bookdesk.desk.selection import SelectionSet

VISIBLE = ["a", "b", "c"]


class TestSelectionSet:
    def test_toggle(self):
        selection = SelectionSet()
        assert selection.toggle("a") is True
        assert "a" in selection
        assert selection.toggle("a") is False
        assert not selection

    def test_keeps_order_without_duplicates(self):
        selection = SelectionSet(["b", "a"])
        selection.add("b")
        selection.add("c")
        assert selection.ids() == ["b", "a", "c"]
        assert len(selection) == 3

    def test_toggle_all_selects_then_clears(self):
        selection = SelectionSet(["a"])
        selection.toggle_all(VISIBLE)
        assert selection.all_selected(VISIBLE)
        selection.toggle_all(VISIBLE)
        assert len(selection) == 0

    def test_deselect_all_keeps_hidden_ids(self):
        selection = SelectionSet(["a", "z"])
        selection.deselect_all(VISIBLE)
        assert selection.ids() == ["z"]

    def test_indeterminate_state(self):
        selection = SelectionSet(["b"])
        assert selection.some_selected(VISIBLE)
        assert not selection.all_selected(VISIBLE)
        selection.select_all(VISIBLE)
        assert not selection.some_selected(VISIBLE)

    def test_empty_view_is_never_all_selected(self):
        assert not SelectionSet(["a"]).all_selected([])

    def test_shared_by_reference(self):
        selection = SelectionSet()
        other_view = selection
        other_view.add("a")
        selection.remove("missing")
        assert list(selection) == ["a"]
        selection.clear()
        assert other_view.ids() == []
