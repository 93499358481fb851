"""Core configuration, errors and orientation math."""
