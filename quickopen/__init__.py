"""quickopen - aggregate, filter and pick files for a text editor's quick open dialog."""

__version__ = "0.4.0"
