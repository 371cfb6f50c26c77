"""anki-status: report due and new Anki card counts."""

__version__ = "0.1.0"
