"""Core package: template models, schema validation and shared utilities."""
