"""Operations performed on behalf of one signed-in identity.

The session client surfaces plain success flags: every gateway or parse
failure is logged and turned into ``False``, an empty list or ``None``.
Nothing is retried. Favoriting is optimistic: the favorite set changes before
the request is sent and is rolled back if the request fails, unless a later
write or the caller's guard says the rollback no longer applies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from pydantic import ValidationError

from furni.gateway import GatewayError, RemoteGateway
from furni.schemas.catalog import Product
from furni.schemas.error import ErrorType
from furni.schemas.user import User
from furni.services.contacts import ContactResolver, populate_with_local_contact
from furni.services.favorites import (
    FavoriteSet,
    deserialize_favorites_map,
    deserialize_friends,
    favorite_body,
    friendship_body,
    registration_body,
)
from furni.services.favorites.payloads import (
    FAVORITES_ENDPOINT,
    FRIENDSHIPS_ENDPOINT,
    USERS_ENDPOINT,
    favorites_endpoint,
    friendships_endpoint,
)
from furni.utils.request_context import clear_request_id, ensure_request_id, set_request_id

logger = logging.getLogger(__name__)

RollbackGuard = Callable[[Product], bool]


class UserSessionClient:
    """Gateway operations bound to a single ``session_id`` (Cognito identity)."""

    def __init__(
        self,
        session_id: str,
        gateway: RemoteGateway,
        *,
        favorites: FavoriteSet | None = None,
        contacts: ContactResolver | None = None,
    ) -> None:
        if not session_id:
            raise ValueError("session_id must not be empty")
        self._session_id = session_id
        self._gateway = gateway
        self._favorites = favorites if favorites is not None else FavoriteSet()
        self._contacts = contacts

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def favorites(self) -> FavoriteSet:
        return self._favorites

    def is_favorited(self, product: Product) -> bool:
        """Return whether ``product`` belongs to this session's favorites."""

        return self._favorites.contains(product.id)

    async def register_user(
        self,
        digits_user_id: str | None = None,
        digits_phone_number: str | None = None,
    ) -> bool:
        """Link the session identity with the optional Digits identity."""

        body = registration_body(self._session_id, digits_user_id, digits_phone_number)
        return await self._send("POST", USERS_ENDPOINT, body, action="register user")

    async def favorite_product(
        self,
        want: bool,
        product: Product,
        *,
        still_current: RollbackGuard | None = None,
    ) -> bool:
        """Favorite or unfavorite ``product`` optimistically.

        The favorite set reflects ``want`` as soon as this coroutine starts
        running. If the request fails, the previous state is restored only when
        no later write touched the product and ``still_current(product)``
        (when given) returns ``True``.
        """

        generation = self._favorites.mark(product, want)
        async with self._favorites.lock_for(product.id):
            method = "POST" if want else "DELETE"
            success = await self._send(
                method,
                FAVORITES_ENDPOINT,
                favorite_body(self._session_id, product),
                action=f"{'favorite' if want else 'unfavorite'} product {product.id}",
            )
            if not success:
                self._rollback(want, product, generation, still_current)
        return success

    async def list_favorites(self) -> list[Product]:
        """Return this identity's favorite products, newest first."""

        products_by_identity = await self._favorites_by_identity()
        if products_by_identity is None:
            return []
        return products_by_identity.get(self._session_id, [])

    async def sync_favorites(self) -> bool:
        """Replace the local favorite set with the server's list."""

        products_by_identity = await self._favorites_by_identity()
        if products_by_identity is None:
            return False
        self._favorites.replace(products_by_identity.get(self._session_id, []))
        return True

    async def upload_friends(self, digits_user_ids: Sequence[str]) -> bool:
        """Declare friendships from this identity to ``digits_user_ids``."""

        body = friendship_body(self._session_id, digits_user_ids)
        return await self._send("POST", FRIENDSHIPS_ENDPOINT, body, action="upload friends")

    async def list_friends(self) -> list[User] | None:
        """Return friends enriched with their favorite products.

        The friendship list is fetched first, then the favorites of the
        friend group; friends without an entry get no favorites. Returns
        ``None`` when either request fails.
        """

        token = set_request_id(ensure_request_id())
        try:
            friends = await self._fetch_friends()
            if friends is None:
                return None

            products_by_identity = await self._favorites_by_identity()
            if products_by_identity is None:
                return None
        finally:
            clear_request_id(token)

        return [
            friend.model_copy(
                update={
                    "favorites": tuple(
                        products_by_identity.get(friend.cognito_id, [])
                        if friend.cognito_id
                        else []
                    )
                }
            )
            for friend in friends
        ]

    async def _fetch_friends(self) -> list[User] | None:
        try:
            payload = await self._gateway.get(friendships_endpoint(self._session_id))
            friends = deserialize_friends(payload)
        except GatewayError as exc:
            logger.warning(
                "Could not list friends of %s (%s): %s",
                self._session_id,
                exc.error_type.value,
                exc,
            )
            return None
        except (TypeError, ValidationError) as exc:
            logger.warning(
                "Could not list friends of %s (%s): %s",
                self._session_id,
                ErrorType.PARSE_ERROR.value,
                exc,
            )
            return None

        return [populate_with_local_contact(friend, self._contacts) for friend in friends]

    async def _favorites_by_identity(self) -> dict[str, list[Product]] | None:
        try:
            payload = await self._gateway.get(favorites_endpoint(self._session_id))
            return deserialize_favorites_map(payload)
        except GatewayError as exc:
            logger.warning(
                "Could not fetch favorites for %s (%s): %s",
                self._session_id,
                exc.error_type.value,
                exc,
            )
        except (TypeError, ValidationError) as exc:
            logger.warning(
                "Error parsing favorite products for %s (%s): %s",
                self._session_id,
                ErrorType.PARSE_ERROR.value,
                exc,
            )
        return None

    async def _send(self, method: str, endpoint: str, body: dict, *, action: str) -> bool:
        try:
            await self._gateway.request(method, endpoint, body)
        except GatewayError as exc:
            logger.warning(
                "Failed to %s for %s (%s): %s",
                action,
                self._session_id,
                exc.error_type.value,
                exc,
            )
            return False
        return True

    def _rollback(
        self,
        want: bool,
        product: Product,
        generation: int,
        still_current: RollbackGuard | None,
    ) -> None:
        if still_current is not None and not still_current(product):
            logger.debug(
                "Skipping rollback of product %s: caller moved on", product.id
            )
            return
        if self._favorites.revert(product, not want, generation=generation):
            logger.info(
                "Rolled back %s of product %s (%s)",
                "favorite" if want else "unfavorite",
                product.id,
                ErrorType.APPLICATION_ERROR.value,
            )
        else:
            logger.debug(
                "Skipping rollback of product %s: superseded by a newer write",
                product.id,
            )


__all__ = ["RollbackGuard", "UserSessionClient"]
