"""Core facade and per-path version state."""
