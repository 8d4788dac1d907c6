"""ghcontributions: yearly GitHub contribution totals across accounts."""

__version__ = "0.1.0"
