def redact_email(email: str) -> str:
    """Redact email address for safe logging (e.g., u***@example.com)."""
    try:
        local, domain = email.split("@")
        return f"{local[0]}***@{domain}" if local else f"***@{domain}"
    except (ValueError, IndexError):
        return "***"


def redact_token(token: str) -> str:
    """Keep only the first characters of a confirmation token."""
    return f"{token[:4]}***" if len(token) > 4 else "***"
