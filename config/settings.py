NAME = "narya"
VERSION = "0.1.0"
SHORT_DESCRIPTION = "A helper CLI for the firefox-ios repository"
LONG_DESCRIPTION = """narya provides a single entry point for running common tasks,
automations, and workflows used in the development of firefox-ios.

The name comes from Narya, the Ring of Fire borne by Gandalf in
Tolkien's legendarium, a symbol of endurance, guidance, and the
ability to inspire others to action."""

MARKER_FILE_NAME = ".narya.yaml"
EXPECTED_PROJECT = "firefox-ios"


def about_text() -> str:
    """Returns the name, version and long description shown by `narya about`."""
    return f"{NAME} (version {VERSION})\n\n{LONG_DESCRIPTION}"
