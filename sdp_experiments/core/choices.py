"""Named options selectable by short identifier in experiment configurations."""

import enum
from typing import NamedTuple, TypeVar


class Choice(NamedTuple):
    """Identifier and display name of an option used in experiment configurations."""

    id: str
    display_name: str

    def __repr__(self):
        return self.id

    def __str__(self):
        return self.id

E = TypeVar("E", bound=enum.Enum)


def choice_by_id(options: type[E], identifier: str) -> E:
    """Find the enum member whose `Choice` id matches, ignoring case.

    Raises:
        ValueError: If no member carries the identifier.
    """
    for member in options:
        if member.value.id.lower() == identifier.lower():
            return member
    known = ", ".join(member.value.id for member in options)
    raise ValueError(f"Unknown {options.__name__} id: {identifier} (known: {known})")
