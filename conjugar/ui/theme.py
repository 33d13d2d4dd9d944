"""Color theme and styling for the TUI."""

# Urwid palette for the application
# Format: (name, foreground, background, mono, foreground_high, background_high)

PALETTE = [
    # Feedback
    ("correct", "light green", ""),
    ("incorrect", "light red", ""),
    ("unresolved", "dark gray", ""),

    # Tense chips
    ("chip_on", "white,bold", "dark green"),
    ("chip_off", "light gray", "dark gray"),
    ("chip_focus", "white,bold", "dark cyan"),

    # UI elements
    ("header", "white", "dark blue"),
    ("footer", "white", "dark gray"),
    ("tab_active", "white,bold", "dark blue"),
    ("tab_inactive", "light gray", "dark gray"),

    # List items
    ("list_item", "white", ""),
    ("list_item_selected", "white", "dark blue"),
    ("list_item_focus", "white,bold", "dark cyan"),

    # Content
    ("content", "white", ""),
    ("content_title", "white,bold", ""),
    ("muted", "dark gray", ""),

    # Status/info
    ("info", "light cyan", ""),
    ("success", "light green", ""),
    ("warning", "yellow", ""),
    ("error", "light red", ""),

    # Practice
    ("prompt_verb", "white,bold", ""),
    ("prompt_detail", "light cyan", ""),
    ("answer", "white,bold", "dark blue"),

    # Dialog
    ("dialog", "white", "dark gray"),
    ("dialog_title", "white,bold", "dark blue"),
    ("button", "white", "dark gray"),
    ("button_focus", "white,bold", "dark blue"),
]


def get_feedback_attr(correct: bool, expected: str = "x") -> str:
    """Get attribute name for an answer result."""
    if not expected:
        return "unresolved"
    return "correct" if correct else "incorrect"


def get_chip_attr(active: bool) -> str:
    """Get attribute name for a tense chip."""
    return "chip_on" if active else "chip_off"


def get_accuracy_attr(accuracy: int, total: int) -> str:
    """Color accuracy figures: green from 80%, yellow from 50%."""
    if total == 0:
        return "muted"
    if accuracy >= 80:
        return "success"
    if accuracy >= 50:
        return "warning"
    return "error"
