"""On-disk response cache."""
