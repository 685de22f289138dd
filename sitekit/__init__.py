"""Static site minification and quality-assurance toolkit."""

__version__ = "0.1.0"
