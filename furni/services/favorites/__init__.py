"""Favorites and friendship helpers used by the user session client.

``FavoriteSet`` holds the active session's favorite membership; the payload
module builds request bodies and parses the social endpoints' responses.
"""

from .payloads import (
    deserialize_favorites_map,
    deserialize_friends,
    favorite_body,
    friendship_body,
    registration_body,
)
from .registry import FavoriteSet

__all__ = [
    "FavoriteSet",
    "deserialize_favorites_map",
    "deserialize_friends",
    "favorite_body",
    "friendship_body",
    "registration_body",
]
