"""Core domain: models, ports, errors, identifier grammar and build context."""
