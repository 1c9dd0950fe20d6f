"""Core infrastructure: configuration, logging, errors and the table client."""
