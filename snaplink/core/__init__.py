"""Core infrastructure: configuration, persistence, caching and observability."""
