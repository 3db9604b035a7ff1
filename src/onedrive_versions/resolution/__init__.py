"""Remote item resolution and version retrieval."""
