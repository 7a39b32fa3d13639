"""Core validation and reconciliation kernel (no I/O)."""
