"""Session lifecycle and page readiness helpers."""
