"""Application layer: use cases and their default wiring."""
