"""Contact resolution used to enrich users with a name, picture and address.

The storefront never owns the address book: a :class:`ContactResolver`
collaborator answers lookups by phone number. :class:`InMemoryContactBook`
is the resolver used by tests and by the CLI when a contacts file is given.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from furni.schemas.user import ContactCard, User

logger = logging.getLogger(__name__)

_PHONE_SEPARATORS = " )(-"


@runtime_checkable
class ContactResolver(Protocol):
    """Protocol describing the contact-resolution collaborator."""

    def lookup(self, phone_number: str) -> ContactCard | None:
        ...


def strip_phone_separators(phone_number: str) -> str:
    """Remove the spaces, parentheses and dashes used to format a number."""

    return "".join(ch for ch in phone_number if ch not in _PHONE_SEPARATORS)


def phone_numbers_match(contact_number: str, phone_number: str) -> bool:
    """Return ``True`` when ``phone_number`` contains the stripped contact number.

    Contact numbers are often stored without the country prefix the sign-in
    provider adds, hence the containment test instead of equality.
    """

    stripped = strip_phone_separators(contact_number)
    return bool(stripped) and stripped in phone_number


class InMemoryContactBook:
    """Resolve contacts from a fixed list of cards, first match wins."""

    def __init__(self, cards: Iterable[ContactCard] = ()) -> None:
        self._cards = list(cards)

    def add(self, card: ContactCard) -> None:
        self._cards.append(card)

    def lookup(self, phone_number: str) -> ContactCard | None:
        for card in self._cards:
            if any(phone_numbers_match(number, phone_number) for number in card.phone_numbers):
                return card
        return None


def populate_with_local_contact(user: User, resolver: ContactResolver | None) -> User:
    """Return ``user`` enriched from the matching local contact.

    The user is returned unchanged when it has no phone number, when no
    resolver is configured or when no contact matches.
    """

    if resolver is None or not user.digits_phone_number:
        return user

    card = resolver.lookup(user.digits_phone_number)
    if card is None:
        logger.debug("No local contact matches %s", user.digits_phone_number)
        return user

    return user.model_copy(
        update={
            "full_name": card.full_name,
            "image": card.image,
            "postal_address": card.postal_addresses[0] if card.postal_addresses else None,
        }
    )


__all__ = [
    "ContactResolver",
    "InMemoryContactBook",
    "phone_numbers_match",
    "populate_with_local_contact",
    "strip_phone_separators",
]
