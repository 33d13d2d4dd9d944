"""Custom urwid widgets for the conjugation trainer."""

from typing import Callable, Optional

import urwid

from conjugar.core.models import Tense
from conjugar.ui.theme import get_chip_attr


# Every attribute inside a row turns into the focus colour when the row is focused
ROW_FOCUS_MAP = {None: "list_item_focus", "list_item": "list_item_focus", "muted": "list_item_focus"}


class EntryRow(urwid.WidgetWrap):
    """One verb or student in a list: a title and a muted detail line."""

    def __init__(self, key: str, title: str, detail: str = "", on_select=None):
        self.key = key
        self.on_select = on_select

        markup = [title]
        if detail:
            markup.append(("muted", f"\n  {detail}"))
        super().__init__(urwid.AttrMap(urwid.Text(markup), "list_item", focus_map=ROW_FOCUS_MAP))

    def selectable(self):
        return True

    def _select(self):
        if self.on_select:
            self.on_select(self.key)

    def keypress(self, size, key):
        if key == "enter" and self.on_select:
            self._select()
            return None
        return key

    def mouse_event(self, size, event, button, col, row, focus):
        if event == "mouse press" and button == 1 and self.on_select:
            self._select()
            return True
        return False


class EntryList(urwid.WidgetWrap):
    """Scrollable list of EntryRows that keeps its cursor across refreshes."""

    def __init__(self, on_select=None):
        self.on_select = on_select
        self.walker = urwid.SimpleFocusListWalker([])
        super().__init__(urwid.ListBox(self.walker))

    def set_entries(self, entries: list[tuple[str, str, str]]):
        """Replace rows with (key, title, detail) entries."""
        keep = self.focused_key()
        self.walker[:] = [EntryRow(key, title, detail, self.on_select) for key, title, detail in entries]

        keys = [key for key, _, _ in entries]
        if keep in keys:
            self.walker.set_focus(keys.index(keep))

    def focused_key(self) -> str | None:
        """Key of the row under the cursor."""
        if not self.walker or self.walker.focus is None:
            return None
        return self.walker[self.walker.focus].key


class TenseChips(urwid.WidgetWrap):
    """Row of toggleable tense chips.

    Keys 1-5 toggle the matching tense; Enter or click toggles the focused
    chip.
    """

    def __init__(self, on_toggle: Callable[[Tense], list[Tense]]):
        self.on_toggle = on_toggle
        self.active: list[Tense] = []
        self.columns = urwid.Columns([], dividechars=1)
        super().__init__(self.columns)

    def set_active(self, tenses: list[Tense]):
        """Redraw chips for the given selection."""
        self.active = list(tenses)
        focus = self.columns.focus_position if self.columns.contents else 0
        chips = []
        for index, tense in enumerate(Tense, start=1):
            mark = "x" if tense in self.active else " "
            label = f"[{mark}] {index} {tense.label}"
            button = urwid.Button(label)
            urwid.connect_signal(button, "click", lambda b, t=tense: self._toggle(t))
            chip = urwid.AttrMap(button, get_chip_attr(tense in self.active), focus_map="chip_focus")
            chips.append((chip, self.columns.options("given", len(label) + 4)))
        self.columns.contents = chips
        self.columns.focus_position = min(focus, len(chips) - 1)

    def _toggle(self, tense: Tense):
        self.set_active(self.on_toggle(tense))

    def keypress(self, size, key):
        if isinstance(key, str) and len(key) == 1 and key in "12345":
            self._toggle(list(Tense)[int(key) - 1])
            return None
        return super().keypress(size, key)


class TabBar(urwid.WidgetWrap):
    """Header row of tabs labelled with their function key."""

    def __init__(self, tabs: list[str], on_tab_change=None, active: int = 0):
        self.labels = [f" F{n} {name} " for n, name in enumerate(tabs, start=1)]
        self.active_tab = active
        self.on_tab_change = on_tab_change
        super().__init__(self._render_tabs())

    def _render_tabs(self) -> urwid.Widget:
        cells = [
            ("pack", urwid.AttrMap(urwid.Text(label), "tab_active" if i == self.active_tab else "tab_inactive"))
            for i, label in enumerate(self.labels)
        ]
        return urwid.AttrMap(urwid.Columns(cells, dividechars=1), "header")

    def tab_at(self, col: int) -> Optional[int]:
        """Index of the tab drawn at a screen column."""
        start = 0
        for index, label in enumerate(self.labels):
            if start <= col < start + len(label):
                return index
            start += len(label) + 1
        return None

    def set_active(self, index: int):
        if not 0 <= index < len(self.labels):
            return
        self.active_tab = index
        self._w = self._render_tabs()
        if self.on_tab_change:
            self.on_tab_change(index)

    def mouse_event(self, size, event, button, col, row, focus):
        if event != "mouse press" or button != 1:
            return False
        index = self.tab_at(col)
        if index is not None:
            self.set_active(index)
        return index is not None


class StatusBar(urwid.WidgetWrap):
    """Footer with a message on the left and key hints on the right."""

    def __init__(self):
        self.message_text = urwid.Text("")
        self.hint_text = urwid.Text("", align="right")
        columns = urwid.Columns([self.message_text, ("pack", self.hint_text)], dividechars=2)
        super().__init__(urwid.AttrMap(columns, "footer"))

    @property
    def message(self) -> str:
        return self.message_text.text

    def set_message(self, message: str):
        self.message_text.set_text(message)

    def set_hint(self, hint: str):
        self.hint_text.set_text(hint)


class Dialog(urwid.WidgetWrap):
    """Framed form with a row of action buttons and an optional error line."""

    def __init__(
        self,
        title: str,
        body: urwid.Widget,
        actions: list[tuple[str, Callable[[], None]]],
        error: Optional[urwid.Text] = None,
    ):
        buttons = []
        for label, callback in actions:
            button = urwid.Button(label, on_press=lambda b, cb=callback: cb())
            buttons.append(urwid.AttrMap(button, "button", focus_map="button_focus"))
        width = max(len(label) for label, _ in actions) + 4
        action_row = urwid.GridFlow(buttons, cell_width=width, h_sep=2, v_sep=0, align="center")

        rows = [body, urwid.Divider()]
        if error is not None:
            rows += [urwid.AttrMap(error, "error"), urwid.Divider()]
        rows.append(action_row)

        frame = urwid.LineBox(urwid.Pile(rows), title=title, title_attr="dialog_title")
        super().__init__(urwid.AttrMap(frame, "dialog"))
