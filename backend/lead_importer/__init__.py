"""Background worker that imports uploaded lead spreadsheets into the leads store."""

__version__ = "0.1.0"
