"""Session tokens and password hashing."""
