"""Domain layer - library documents and the export engine."""
