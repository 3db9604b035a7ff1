"""Local-root to remote-root mapping discovery and selection."""
