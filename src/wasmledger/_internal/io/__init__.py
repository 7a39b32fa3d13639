"""File I/O helpers (internal)."""
