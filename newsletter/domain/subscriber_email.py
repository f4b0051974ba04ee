from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from newsletter.domain.errors import InvalidSubscriberData


@dataclass(frozen=True)
class SubscriberEmail:
    """An email address that passed syntax validation.

    The address is kept exactly as submitted; normalisation would make the
    stored value differ from what the subscriber typed.
    """

    value: str

    @classmethod
    def parse(cls, raw: str) -> "SubscriberEmail":
        if not raw:
            raise InvalidSubscriberData("Subscriber email must not be empty.")
        try:
            validate_email(raw, check_deliverability=False)
        except EmailNotValidError as e:
            raise InvalidSubscriberData(f"{raw!r} is not a valid email address: {e}") from e
        return cls(raw)

    def __str__(self) -> str:
        return self.value
