"""Authentication: registration, login, JWT identity and roles."""
