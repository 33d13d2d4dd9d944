"""Main application entry point."""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

import urwid
import yaml

from conjugar.core.exchange import ImportResult, verb_problem
from conjugar.core.models import ConjugationClass, Person, Tense, VerbDefinition
from conjugar.core.conjugation import infer_class, resolve
from conjugar.core.progress import DEFAULT_HISTORY_WINDOW
from conjugar.core.session import TrainerSession
from conjugar.core.verb_bank import VerbBankError
from conjugar.storage.database import Database
from conjugar.storage.files import ExportStorage
from conjugar.ui.theme import PALETTE
from conjugar.ui.widgets import Dialog, TabBar, StatusBar
from conjugar.ui.screens import LoginScreen, PracticeScreen, VerbBankScreen, ProgressScreen

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {
    "data": {
        "base_path": "data",
        "database": "conjugar.db",
        "exports_dir": "exports",
    },
    "practice": {
        "history_window": DEFAULT_HISTORY_WINDOW,
        "default_tag": None,
    },
    "logging": {
        "level": "INFO",
        "file": "conjugar.log",
    },
}


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from file, filling in defaults section by section."""
    paths_to_try = [
        config_path,
        "config.yaml",
        os.path.expanduser("~/.config/conjugar/config.yaml"),
    ]

    loaded: dict = {}
    for path in paths_to_try:
        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            break

    if not isinstance(loaded, dict):
        logger.warning("Config file is not a mapping, using defaults")
        loaded = {}

    config = {}
    for section, defaults in DEFAULT_CONFIG.items():
        overrides = loaded.get(section) or {}
        if not isinstance(overrides, dict):
            logger.warning("Config section %r is not a mapping, using defaults", section)
            overrides = {}
        config[section] = {**defaults, **overrides}

    practice = config["practice"]
    try:
        practice["history_window"] = int(practice["history_window"])
    except (TypeError, ValueError):
        logger.warning("Invalid history_window %r, using %d",
                       practice["history_window"], DEFAULT_HISTORY_WINDOW)
        practice["history_window"] = DEFAULT_HISTORY_WINDOW
    return config


def configure_logging(config: dict) -> None:
    """Send log records to a file; the terminal belongs to the UI."""
    log_config = config.get("logging", {})
    base_path = Path(config["data"]["base_path"])
    base_path.mkdir(parents=True, exist_ok=True)

    level = getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        filename=base_path / log_config.get("file", "conjugar.log"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )


class App:
    """Main application class."""

    TAB_NAMES = ["Login", "Practice", "Verbs", "Progress"]

    def __init__(self, config_path: Optional[str] = None, config: Optional[dict] = None):
        self.config = config or load_config(config_path)

        data_config = self.config["data"]
        base_path = Path(data_config["base_path"])

        self.db = Database(base_path / data_config["database"])
        self.exports = ExportStorage(base_path / data_config["exports_dir"])

        practice_config = self.config["practice"]
        self.session = TrainerSession(
            self.db,
            history_window=int(practice_config["history_window"]),
            tag=practice_config.get("default_tag"),
        )

        self.loop: Optional[urwid.MainLoop] = None

        self._init_ui()

    def _init_ui(self):
        """Initialize the UI components."""
        # Returning students start on the practice tab
        start = 1 if self.session.active_student else 0

        self.tab_bar = TabBar(self.TAB_NAMES, on_tab_change=self._on_tab_change, active=start)

        self.login_screen = LoginScreen(self)
        self.practice_screen = PracticeScreen(self)
        self.verb_screen = VerbBankScreen(self)
        self.progress_screen = ProgressScreen(self)

        self.screens = [
            self.login_screen,
            self.practice_screen,
            self.verb_screen,
            self.progress_screen,
        ]

        self.status_bar = StatusBar()

        self.body = urwid.WidgetPlaceholder(self.screens[start])

        self.frame = urwid.Frame(
            header=self.tab_bar,
            body=self.body,
            footer=self.status_bar,
        )

        self._refresh_current_screen()
        self.update_status()

    def _on_tab_change(self, index: int):
        """Handle tab change."""
        self.body.original_widget = self.screens[index]
        self._refresh_current_screen()
        self.update_status()

    def _refresh_current_screen(self):
        """Refresh data for the current screen."""
        current = self.body.original_widget

        if current == self.login_screen:
            self.login_screen.refresh()
        elif current == self.practice_screen:
            self.practice_screen.refresh()
        elif current == self.verb_screen:
            self.verb_screen.refresh_list()
        elif current == self.progress_screen:
            self.progress_screen.refresh_list()

    def switch_tab(self, index: int):
        """Switch to a specific tab."""
        self.tab_bar.set_active(index)

    def update_status(self):
        """Update the status bar based on current state."""
        current = self.body.original_widget
        student = self.session.active_student or "nobody"
        self.status_bar.set_message(f"{student} | Verbs: {len(self.session.verbs)}")

        if current == self.login_screen:
            hint = "[Enter] log in [ctrl o] log out [Tab] next tab"
        elif current == self.practice_screen:
            hint = "[Enter] check/next [ctrl n] skip [alt 1-5] tenses [ctrl t] tag"
        elif current == self.verb_screen:
            hint = "[a]dd [e]dit [o]verride [d]elete [i]mport e[x]port [q]uit"
        else:
            hint = "[r]esults CSV [c]lass CSV [D] clear answers [X] remove [q]uit"
        self.status_bar.set_hint(hint)

    def show_message(self, message: str):
        """Show a message in the status bar until the next status update."""
        self.status_bar.set_message(message)

    def handle_input(self, key):
        """Handle global key input."""

        # Mouse events arrive as tuples
        if not isinstance(key, str):
            return

        if key in ("q", "Q", "f10"):
            raise urwid.ExitMainLoop()

        if key in ("f1", "f2", "f3", "f4"):
            self.switch_tab(int(key[1]) - 1)
            return

        if key == "tab":
            current = self.tab_bar.active_tab
            self.switch_tab((current + 1) % len(self.TAB_NAMES))
            return

        if key == "?":
            self._show_help()
            return

    # Overlays

    def _open_overlay(self, widget: urwid.Widget, width=("relative", 70), height=("relative", 70)):
        overlay = urwid.Overlay(
            widget,
            self.frame,
            align="center",
            width=width,
            valign="middle",
            height=height,
        )

        def handle_input(key):
            if key == "esc":
                self._close_overlay()
                return True
            return False

        if self.loop:
            self.loop.widget = overlay
            self.loop.unhandled_input = handle_input

    def _close_overlay(self):
        if self.loop:
            self.loop.widget = self.frame
            self.loop.unhandled_input = self.handle_input
        self._refresh_current_screen()
        self.update_status()

    def _show_help(self):
        """Show help overlay."""
        help_text = """
Spanish Verb Trainer

Navigation:
  F1-F4, Tab  Switch between tabs
  ↑/↓         Navigate lists
  Enter       Select item
  q, F10      Quit (outside text fields)

Practice:
  Enter       Check answer, then next question
  ctrl n      Skip to a new question
  alt 1-5     Toggle tenses (or Enter on a chip)
  ctrl t      Cycle verb tag filter

Verbs:
  a / e / d   Add / edit / delete verb
  o           Set an override form
  i / x       Import CSV or JSON / export JSON

Progress:
  r / c       Export results / class summary CSV
  D / X       Clear answers / remove student

Press Esc to close...
"""
        text = urwid.Text(help_text)
        filler = urwid.Filler(text, valign="top")
        box = urwid.LineBox(filler, title="Help")
        self._open_overlay(box, width=60, height=30)

    def confirm(self, question: str, on_yes: Callable[[], None]):
        """Ask a yes/no question in an overlay."""
        def do_yes():
            self._close_overlay()
            on_yes()

        dialog = Dialog("Confirm", urwid.Text(question, align="center"),
                        [("Yes", do_yes), ("No", self._close_overlay)])
        self._open_overlay(urwid.Filler(dialog), width=50, height=9)

    def show_verb_dialog(self, verb: Optional[VerbDefinition]):
        """Add a new verb, or edit an existing one's infinitive, meaning, type and tags."""
        infinitive_edit = urwid.Edit("Infinitive: ", verb.infinitive if verb else "")
        meaning_edit = urwid.Edit("Meaning:    ", verb.meaning if verb else "")
        type_edit = urwid.Edit("Type:       ", verb.conjugation_class.value if verb else "")
        tags_edit = urwid.Edit("Tags (;):   ", ";".join(verb.tags) if verb else "")
        error_text = urwid.Text("")

        def do_save():
            infinitive = infinitive_edit.edit_text.strip()
            if not infinitive:
                error_text.set_text("Infinitive is required")
                return

            type_value = type_edit.edit_text.strip()
            try:
                cls = ConjugationClass.parse(type_value) if type_value else infer_class(infinitive)
            except ValueError:
                error_text.set_text("Type must be ar, er, ir or irregular")
                return

            updated = VerbDefinition(
                infinitive=infinitive,
                conjugation_class=cls,
                meaning=meaning_edit.edit_text.strip(),
                tags=[t.strip() for t in tags_edit.edit_text.split(";") if t.strip()],
                overrides=dict(verb.overrides) if verb else {},
            )
            problem = verb_problem(updated)
            if problem:
                error_text.set_text(problem)
                return

            try:
                if verb:
                    self.session.verbs.update(verb.infinitive, updated)
                else:
                    self.session.verbs.add(updated)
            except VerbBankError as e:
                error_text.set_text(str(e))
                return

            self._close_overlay()
            self.show_message(f"Saved: {infinitive}")

        body = urwid.Pile([
            urwid.AttrMap(infinitive_edit, "list_item_focus"),
            urwid.AttrMap(meaning_edit, "list_item_focus"),
            urwid.AttrMap(type_edit, "list_item_focus"),
            urwid.AttrMap(tags_edit, "list_item_focus"),
            urwid.Text(("muted", "Leave type empty to infer it from the ending."), align="center"),
        ])
        title = f"Edit: {verb.infinitive}" if verb else "Add verb"
        dialog = Dialog(title, body, [("Save", do_save), ("Cancel", self._close_overlay)], error_text)
        self._open_overlay(urwid.Filler(dialog, valign="top"), height=18)

    def show_override_dialog(self, verb: VerbDefinition):
        """Set or clear the override for one tense/person cell."""
        state = {"tense": 0, "person": 0}
        cell_text = urwid.Text("")
        form_edit = urwid.Edit("Form: ")

        def show_cell():
            tense = list(Tense)[state["tense"]]
            person = list(Person)[state["person"]]
            current = verb.override(tense, person)
            cell_text.set_text(
                f"{tense.label} · {person.pronoun}  (now: {resolve(verb, tense, person) or '-'})"
            )
            form_edit.set_edit_text(current)

        def cycle(field: str, size: int):
            state[field] = (state[field] + 1) % size
            show_cell()

        def do_save():
            tense = list(Tense)[state["tense"]]
            person = list(Person)[state["person"]]
            self.session.verbs.set_override(verb.infinitive, tense, person, form_edit.edit_text)
            self._close_overlay()
            self.show_message(f"Override saved for {verb.infinitive}")

        body = urwid.Pile([
            cell_text,
            urwid.Divider(),
            urwid.AttrMap(form_edit, "list_item_focus"),
            urwid.Text(("muted", "Empty form clears the override."), align="center"),
        ])
        buttons = [
            ("Tense", lambda: cycle("tense", len(Tense))),
            ("Person", lambda: cycle("person", len(Person))),
            ("Save", do_save),
            ("Cancel", self._close_overlay),
        ]
        show_cell()
        dialog = Dialog(f"Override: {verb.infinitive}", body, buttons)
        self._open_overlay(urwid.Filler(dialog, valign="top"), height=14)

    def show_import_dialog(self):
        """Import verbs from a CSV or JSON file."""
        path_edit = urwid.Edit("File: ")
        error_text = urwid.Text("")

        def do_import():
            path = path_edit.edit_text.strip()
            text = self.exports.read(path) if path else None
            if text is None:
                error_text.set_text("Could not read that file")
                return

            result = self.session.import_verbs(text)
            self._close_overlay()
            self.show_message(import_message(result))

        body = urwid.Pile([
            urwid.AttrMap(path_edit, "list_item_focus"),
            urwid.Text(("muted", "JSON array, or CSV: infinitive,meaning,type,tags"), align="center"),
        ])
        dialog = Dialog("Import verbs", body, [("Import", do_import), ("Cancel", self._close_overlay)], error_text)
        self._open_overlay(urwid.Filler(dialog, valign="top"), height=12)

    # Actions

    def remove_verb(self, infinitive: str):
        try:
            self.session.verbs.remove(infinitive)
        except VerbBankError as e:
            self.show_message(str(e))
            return
        self.verb_screen.refresh_list()
        self.show_message(f"Deleted: {infinitive}")

    def remove_student(self, name: str):
        if self.session.remove_student(name):
            self.progress_screen.current_student = None
            self.progress_screen.refresh_list()
            self.show_message(f"Removed {name}")

    def clear_attempts(self, name: str):
        removed = self.session.clear_attempts(name)
        self.progress_screen.refresh_list()
        self.show_message(f"Cleared {removed} answers of {name}")

    def export_verbs(self):
        path = self.exports.write("verbs", "json", self.session.verbs_json())
        self.show_message(f"Exported verb bank to {path}")

    def export_results(self, name: str):
        path = self.exports.write(f"results-{name}", "csv", self.session.results_csv(name))
        self.show_message(f"Exported results to {path}")

    def export_summary(self):
        path = self.exports.write("class-summary", "csv", self.session.summary_csv())
        self.show_message(f"Exported class summary to {path}")

    def run(self):
        """Run the application."""
        self.loop = urwid.MainLoop(
            self.frame,
            palette=PALETTE,
            unhandled_input=self.handle_input,
            handle_mouse=True,
        )

        try:
            self.loop.run()
        except KeyboardInterrupt:
            pass


def import_message(result: ImportResult) -> str:
    """Status line for a finished import."""
    message = f"Imported {len(result.verbs)} verbs"
    if result.skipped:
        message += f", skipped {result.skipped} malformed"
    return message


def main():
    """Entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Spanish Verb Conjugation Trainer")
    parser.add_argument(
        "-c", "--config",
        help="Path to config file",
        default=None,
    )
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config)
    logger.info("Starting with data in %s", config["data"]["base_path"])

    app = App(config=config)
    app.run()


if __name__ == "__main__":
    main()
