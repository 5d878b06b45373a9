"""Qt-facing front of the engine analysis core."""
