"""trip-exec: travel itinerary execution runtime."""

__version__ = "0.1.0"
