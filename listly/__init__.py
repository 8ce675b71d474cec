"""Named todo lists kept in a local store, with a terminal editor and JSON/YAML import and export."""

__version__ = "0.1.0"