"""News aggregator — incremental synchronization of publisher content into a searchable store."""
