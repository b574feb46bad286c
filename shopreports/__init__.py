"""Shop reports: e-commerce schema with analytical order reports."""

__version__ = "1.0.0"
