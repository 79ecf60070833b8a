"""Client for the Picasa Web Albums feed API."""

__version__ = "3.0.0"
