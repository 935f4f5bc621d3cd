"""butter: command-line scaffolding for a front-end design system."""

__version__ = "1.0.0"
