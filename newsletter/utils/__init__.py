"""Utility functions."""
from newsletter.utils.redaction import redact_email, redact_token

__all__ = ["redact_email", "redact_token"]
