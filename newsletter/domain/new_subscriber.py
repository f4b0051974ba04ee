from dataclasses import dataclass

from newsletter.domain.subscriber_email import SubscriberEmail
from newsletter.domain.subscriber_name import SubscriberName


@dataclass(frozen=True)
class NewSubscriber:
    email: SubscriberEmail
    name: SubscriberName

    @classmethod
    def parse(cls, *, name: str, email: str) -> "NewSubscriber":
        """Validate raw form input; the first invalid field aborts parsing."""
        parsed_name = SubscriberName.parse(name)
        parsed_email = SubscriberEmail.parse(email)
        return cls(email=parsed_email, name=parsed_name)
