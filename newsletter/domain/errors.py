class InvalidSubscriberData(ValueError):
    """Raised when raw input cannot be turned into a domain value."""
