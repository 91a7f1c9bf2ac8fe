"""globalconf - persistent global configuration for a local dev-environment CLI."""

__version__ = "0.1.0"
