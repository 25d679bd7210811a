"""Core configuration, models and run context."""
