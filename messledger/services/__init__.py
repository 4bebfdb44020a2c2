"""External services package."""
