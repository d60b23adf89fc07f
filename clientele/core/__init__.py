"""Core infrastructure: configuration, logging, errors, database and Redis."""
