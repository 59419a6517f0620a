"""Core infrastructure: configuration, logging, errors, identity, resilience."""
