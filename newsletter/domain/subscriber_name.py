from dataclasses import dataclass

import regex

from newsletter.domain.errors import InvalidSubscriberData

MAX_NAME_GRAPHEMES = 256
FORBIDDEN_CHARACTERS = frozenset('/()"<>\\{}')

_GRAPHEME = regex.compile(r"\X")


def _grapheme_count(value: str) -> int:
    return len(_GRAPHEME.findall(value))


@dataclass(frozen=True)
class SubscriberName:
    """A subscriber display name that is known to be well formed.

    Instances only come out of ``parse``; holding one means the name is
    non-blank, at most 256 user-perceived characters long, and free of
    characters that commonly show up in markup or injection attempts.
    """

    value: str

    @classmethod
    def parse(cls, raw: str) -> "SubscriberName":
        if not raw or not raw.strip():
            raise InvalidSubscriberData("Subscriber name must not be empty.")
        if _grapheme_count(raw) > MAX_NAME_GRAPHEMES:
            raise InvalidSubscriberData(
                f"Subscriber name must be at most {MAX_NAME_GRAPHEMES} characters long."
            )
        if any(ch in FORBIDDEN_CHARACTERS for ch in raw):
            raise InvalidSubscriberData("Subscriber name contains forbidden characters.")
        return cls(raw)

    def __str__(self) -> str:
        return self.value
