"""Core configuration, domain logic and cross-cutting concerns."""
