"""Spreadsheet -> Firestore inventory importer."""

__version__ = "0.1.0"
