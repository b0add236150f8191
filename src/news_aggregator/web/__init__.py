"""Web layer — read-only query API over the article store."""
