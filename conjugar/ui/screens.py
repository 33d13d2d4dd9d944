"""Screen compositions for different app views."""

import urwid

from conjugar.core.conjugation import conjugation_table, display_form
from conjugar.core.models import Person, Tense, VerbDefinition
from conjugar.core.progress import attempts_for
from conjugar.ui.theme import get_accuracy_attr, get_feedback_attr
from conjugar.ui.widgets import EntryList, TenseChips


# Alt+digit toggles a tense while the answer field has focus
TENSE_KEYS = {f"meta {n}": str(n) for n in range(1, 6)}


class LoginScreen(urwid.WidgetWrap):
    """Screen for choosing the active student."""

    def __init__(self, app):
        self.app = app

        self.name_edit = urwid.Edit("Your name: ")
        self.error_text = urwid.Text("")
        self.current_text = urwid.Text("")

        # Roster for returning students
        self.roster = EntryList(on_select=self._on_student_select)

        form = urwid.Pile([
            urwid.Text("Spanish Verb Trainer", align="center"),
            urwid.Divider(),
            self.current_text,
            urwid.Divider(),
            urwid.AttrMap(self.name_edit, "list_item_focus"),
            urwid.AttrMap(self.error_text, "error"),
            urwid.Divider(),
            urwid.Text("[Enter] log in  [ctrl o] log out", align="center"),
        ])

        self.form_box = urwid.LineBox(urwid.Filler(form, valign="top"), title="Student login")
        self.roster_box = urwid.LineBox(self.roster, title="Students")

        self.pile = urwid.Pile([
            ("weight", 1, self.form_box),
            ("weight", 1, self.roster_box),
        ])

        super().__init__(self.pile)

    def refresh(self):
        """Refresh roster and login state."""
        session = self.app.session
        if session.active_student:
            self.current_text.set_text(("success", f"Logged in as {session.active_student}"))
        else:
            self.current_text.set_text(("muted", "Not logged in"))

        items = []
        for student in session.students:
            totals = session.totals(student.name)
            items.append((student.name, student.name, f"{totals.total} answers, {totals.accuracy}%"))
        self.roster.set_entries(items)

    def _submit(self):
        """Log in with the typed name. The form stays open on error."""
        error = self.app.session.login(self.name_edit.edit_text)
        if error:
            self.error_text.set_text(error)
            return

        self.error_text.set_text("")
        self.name_edit.set_edit_text("")
        self.refresh()
        self.app.show_message(f"Welcome, {self.app.session.active_student}")
        self.app.switch_tab(1)

    def _on_student_select(self, name: str):
        self.name_edit.set_edit_text(name)
        self._submit()

    def keypress(self, size, key):
        if key == "enter" and self.pile.focus is self.form_box:
            self._submit()
            return None
        if key == "ctrl o":
            self.app.session.logout()
            self.refresh()
            self.app.show_message("Logged out")
            return None
        return super().keypress(size, key)


class PracticeScreen(urwid.WidgetWrap):
    """Screen for answering conjugation questions."""

    def __init__(self, app):
        self.app = app
        self.answered = False

        self.student_text = urwid.Text("")
        self.prompt_text = urwid.Text("", align="center")
        self.selected_text = urwid.Text("")
        self.tag_text = urwid.Text("")
        self.answer_edit = urwid.Edit("Answer: ")
        self.feedback_text = urwid.Text("", align="center")
        self.score_text = urwid.Text("", align="center")

        self.chips = TenseChips(on_toggle=self._on_toggle)

        self.pile = urwid.Pile([
            self.student_text,
            urwid.Divider(),
            urwid.Text("Select tenses (multi-select):"),
            self.chips,
            self.selected_text,
            self.tag_text,
            urwid.Divider("─"),
            urwid.AttrMap(self.prompt_text, "prompt_verb"),
            urwid.Divider(),
            urwid.AttrMap(self.answer_edit, "answer"),
            urwid.Divider(),
            self.feedback_text,
            urwid.Divider(),
            self.score_text,
        ])
        self.pile.focus_position = 9

        box = urwid.LineBox(urwid.Filler(self.pile, valign="top"), title="Conjugate")
        super().__init__(box)

    def refresh(self):
        """Refresh all labels from the session."""
        session = self.app.session
        if session.active_student:
            self.student_text.set_text(("muted", f"Logged in as {session.active_student}"))
        else:
            self.student_text.set_text(("warning", "Not logged in - go to the Login tab first"))

        self.chips.set_active(session.selection.tenses)
        self.selected_text.set_text(("muted", f"Selected: {session.selection.labels()}"))
        self.tag_text.set_text(("muted", f"Verbs: {session.tag or 'all'}  [ctrl t] change"))

        totals = session.totals()
        self.score_text.set_text(
            (get_accuracy_attr(totals.accuracy, totals.total),
             f"Score: {totals.correct}/{totals.total} ({totals.accuracy}%)")
        )

        if session.question is None and session.active_student:
            self.new_question()
        else:
            self._show_question()

    def _show_question(self):
        question = self.app.session.current_question()
        if question is None:
            if self.app.session.active_student:
                self.prompt_text.set_text("No verbs to practise - add verbs or change the tag filter")
            else:
                self.prompt_text.set_text("")
            return

        self.prompt_text.set_text([
            "Verb: ", ("prompt_verb", question.verb.infinitive),
            " · Person: ", ("prompt_detail", question.person.pronoun),
            " · Tense: ", ("prompt_detail", question.tense.label),
        ])

    def new_question(self):
        """Draw the next question and clear the answer."""
        self.app.session.next_question()
        self.answered = False
        self.answer_edit.set_edit_text("")
        self.feedback_text.set_text("")
        self._show_question()

    def _on_toggle(self, tense: Tense) -> list[Tense]:
        tenses = self.app.session.toggle_tense(tense)
        self.selected_text.set_text(("muted", f"Selected: {self.app.session.selection.labels()}"))
        self._show_question()
        return tenses

    def _cycle_tag(self):
        """Cycle the tag filter through all tags and back to all verbs."""
        options = [None] + self.app.session.verbs.all_tags()
        current = options.index(self.app.session.tag) if self.app.session.tag in options else 0
        self.app.session.set_tag(options[(current + 1) % len(options)])
        self.tag_text.set_text(("muted", f"Verbs: {self.app.session.tag or 'all'}  [ctrl t] change"))
        self.new_question()

    def submit(self):
        """Check the typed answer."""
        session = self.app.session
        feedback = session.submit_answer(self.answer_edit.edit_text)
        if feedback.attempt is None:
            self.feedback_text.set_text(("warning", feedback.message))
            self._show_question()
            if not session.active_student:
                self.app.switch_tab(0)
            return

        self.answered = True
        mark = "✓" if feedback.correct else "✗"
        self.feedback_text.set_text(
            (get_feedback_attr(feedback.correct, feedback.expected), f"{mark} {feedback.message}")
        )
        totals = session.totals()
        self.score_text.set_text(
            (get_accuracy_attr(totals.accuracy, totals.total),
             f"Score: {totals.correct}/{totals.total} ({totals.accuracy}%)")
        )

    def keypress(self, size, key):
        if key == "enter" and self.pile.focus is not self.chips:
            # A second Enter after feedback moves on
            if self.answered:
                self.new_question()
            else:
                self.submit()
            return None
        if key == "ctrl n":
            self.new_question()
            return None
        if key == "ctrl t":
            self._cycle_tag()
            return None
        if key in TENSE_KEYS:
            self.chips.keypress(size, TENSE_KEYS[key])
            return None

        return super().keypress(size, key)


class VerbBankScreen(urwid.WidgetWrap):
    """Screen for browsing and editing the verb bank."""

    def __init__(self, app):
        self.app = app
        self.current_verb: VerbDefinition | None = None

        self.list_browser = EntryList(on_select=self._on_verb_select)

        self.detail_walker = urwid.SimpleFocusListWalker([])
        self.detail_listbox = urwid.ListBox(self.detail_walker)

        self.list_box = urwid.LineBox(self.list_browser, title="Verbs")
        self.content_box = urwid.LineBox(self.detail_listbox, title="Conjugations")

        columns = urwid.Columns([
            ("weight", 1, self.list_box),
            ("weight", 2, self.content_box),
        ])

        super().__init__(columns)

    def refresh_list(self):
        """Refresh the verb list."""
        items = [
            (v.key, v.infinitive, verb_subtitle(v))
            for v in self.app.session.verbs.list_all()
        ]
        self.list_browser.set_entries(items)

        if self.current_verb is not None:
            verb = self.app.session.verbs.get(self.current_verb.infinitive)
            if verb is None:
                self.current_verb = None
                self.detail_walker.clear()
                self.content_box.set_title("Conjugations")
            else:
                self._show_verb(verb)

    def _on_verb_select(self, key: str):
        verb = self.app.session.verbs.get(key)
        if verb:
            self._show_verb(verb)

    def _show_verb(self, verb: VerbDefinition):
        """Display the full conjugation table of a verb."""
        self.current_verb = verb
        self.content_box.set_title(f"{verb.infinitive} ({verb.conjugation_class.label})")
        self.detail_walker.clear()

        if verb.meaning:
            self.detail_walker.append(urwid.Text(("muted", verb.meaning)))
        for tense, forms in conjugation_table(verb).items():
            self.detail_walker.append(urwid.Divider())
            self.detail_walker.append(urwid.Text(("content_title", tense.label)))
            for person, form in zip(Person, forms):
                marker = "*" if verb.override(tense, person) else " "
                attr = "content" if form else "unresolved"
                self.detail_walker.append(
                    urwid.Text([f" {marker} {person.pronoun:<12}", (attr, display_form(form))])
                )

        self.detail_walker.append(urwid.Divider())
        self.detail_walker.append(urwid.Text(("muted", "* = override")))

    def selected_verb(self) -> VerbDefinition | None:
        """Verb under the list cursor, or the one shown in detail."""
        key = self.list_browser.focused_key()
        if key:
            return self.app.session.verbs.get(key)
        return self.current_verb

    def keypress(self, size, key):
        verb = self.selected_verb()

        if key == "a":
            self.app.show_verb_dialog(None)
            return None
        if key == "e":
            if verb:
                self.app.show_verb_dialog(verb)
            else:
                self.app.show_message("No verb selected")
            return None
        if key == "o":
            if verb:
                self.app.show_override_dialog(verb)
            else:
                self.app.show_message("No verb selected")
            return None
        if key == "d":
            if verb:
                self.app.confirm(
                    f"Delete '{verb.infinitive}'?",
                    lambda: self.app.remove_verb(verb.infinitive),
                )
            return None
        if key == "i":
            self.app.show_import_dialog()
            return None
        if key == "x":
            self.app.export_verbs()
            return None

        return super().keypress(size, key)


def verb_subtitle(verb: VerbDefinition) -> str:
    """One-line summary shown under a verb in the list."""
    parts = [verb.conjugation_class.label]
    if verb.meaning:
        parts.append(verb.meaning)
    if verb.tags:
        parts.append(", ".join(verb.tags[:3]))
    if verb.overrides:
        parts.append(f"{len(verb.overrides)} overrides")
    return " · ".join(parts)


class ProgressScreen(urwid.WidgetWrap):
    """Screen for per-student results and the class summary."""

    def __init__(self, app):
        self.app = app
        self.current_student: str | None = None

        self.list_browser = EntryList(on_select=self._on_student_select)

        self.detail_walker = urwid.SimpleFocusListWalker([])
        self.detail_listbox = urwid.ListBox(self.detail_walker)

        self.list_box = urwid.LineBox(self.list_browser, title="Class")
        self.content_box = urwid.LineBox(self.detail_listbox, title="Results")

        columns = urwid.Columns([
            ("weight", 1, self.list_box),
            ("weight", 2, self.content_box),
        ])

        super().__init__(columns)

    def refresh_list(self):
        """Refresh the class list and the selected student's results."""
        items = [
            (t.student, t.student, f"{t.correct}/{t.total} correct · {t.accuracy}%")
            for t in self.app.session.class_totals()
        ]
        self.list_browser.set_entries(items)

        name = self.current_student or self.app.session.active_student
        if name and self.app.session.find_student(name):
            self._show_student(name)
        else:
            self.current_student = None
            self.detail_walker.clear()

    def _on_student_select(self, name: str):
        self._show_student(name)

    def _show_student(self, name: str):
        """Display totals, the per-tense breakdown and recent answers."""
        session = self.app.session
        self.current_student = name
        self.content_box.set_title(name)
        self.detail_walker.clear()

        totals = session.totals(name)
        self.detail_walker.append(urwid.Text(
            (get_accuracy_attr(totals.accuracy, totals.total),
             f"{totals.correct} of {totals.total} correct ({totals.accuracy}%)")
        ))
        self.detail_walker.append(urwid.Divider())
        self.detail_walker.append(urwid.Text(
            ("content_title", f"By tense (last {session.history_window} answers)")
        ))

        breakdown = session.breakdown(name)
        if not breakdown:
            self.detail_walker.append(urwid.Text(("muted", "  no answers yet")))
        for tense, tally in breakdown.items():
            self.detail_walker.append(urwid.Text(f"  {tense.label:<12} {tally.correct}/{tally.total}"))

        self.detail_walker.append(urwid.Divider())
        self.detail_walker.append(urwid.Text(("content_title", "Recent answers")))
        recent = attempts_for(session.attempts, name)[-10:]
        for attempt in reversed(recent):
            attr = get_feedback_attr(attempt.correct, attempt.expected)
            self.detail_walker.append(urwid.Text([
                f"  {attempt.timestamp:%Y-%m-%d %H:%M} {attempt.verb} · {attempt.person.pronoun} · "
                f"{attempt.tense.label}: ",
                (attr, attempt.submitted or "-"),
                ("muted", f" ({display_form(attempt.expected)})"),
            ]))

    def keypress(self, size, key):
        name = self.list_browser.focused_key() or self.current_student

        if key == "r":
            if name:
                self.app.export_results(name)
            else:
                self.app.show_message("No student selected")
            return None
        if key == "c":
            self.app.export_summary()
            return None
        if key == "D" and name:
            self.app.confirm(
                f"Clear all answers of {name}?",
                lambda: self.app.clear_attempts(name),
            )
            return None
        if key == "X" and name:
            self.app.confirm(
                f"Remove {name} from the class?",
                lambda: self.app.remove_student(name),
            )
            return None

        return super().keypress(size, key)
