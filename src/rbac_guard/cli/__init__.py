"""Command-line interface for rbac-guard."""
