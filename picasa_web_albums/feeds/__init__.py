"""Feed XML parsing and request entry construction."""
