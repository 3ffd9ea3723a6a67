"""Daily balance entry with debounced autosave for the clinic intranet."""

__version__ = "0.1.0"
