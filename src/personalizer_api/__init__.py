"""Per-client personalization of a landing-page template."""

__version__ = "0.1.0"
