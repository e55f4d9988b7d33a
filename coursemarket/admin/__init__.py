"""Admin operations: catalogue management, statistics and roles."""
