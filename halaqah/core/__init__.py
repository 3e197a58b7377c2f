"""Core domain layer: lookup catalog, models and errors."""
