"""Lead Finder: sequential business search over a table of locations."""

__version__ = "0.1.0"
