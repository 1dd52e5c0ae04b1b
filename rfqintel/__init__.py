"""rfqintel - item intelligence and revision tracking for request-for-quote workflows."""

__version__ = "0.1.0"
