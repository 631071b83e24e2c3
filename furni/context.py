"""Wiring of the process-wide storefront services.

Keeping construction here leaves the service modules free of configuration
concerns, so tests and the CLI can assemble the same objects with fakes.
"""

from __future__ import annotations

import logging

import httpx

from furni.cache import CatalogStore
from furni.gateway import RemoteGateway
from furni.schemas.user import User
from furni.services.cart_service import Cart, ShippingPolicy
from furni.services.catalog_service import CatalogClient
from furni.services.checkout_service import CheckoutService, PaymentAuthorizer
from furni.services.contacts import ContactResolver, populate_with_local_contact
from furni.services.session_service import UserSessionClient
from furni.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


class AppContext:
    """Own the gateway, catalog, cart and the active user session."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        gateway: RemoteGateway | None = None,
        contacts: ContactResolver | None = None,
        authorizer: PaymentAuthorizer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._owns_gateway = gateway is None
        self._gateway = gateway or RemoteGateway.from_settings(
            self._settings, transport=transport
        )
        self._transport = transport
        self._contacts = contacts
        self._authorizer = authorizer
        self._store = CatalogStore()
        self._catalog = CatalogClient(self._gateway, self._store)
        self._cart = Cart(ShippingPolicy.from_settings(self._settings))
        self._session: UserSessionClient | None = None
        self._user: User | None = None
        self._charge_gateway: RemoteGateway | None = None

        # Browsing contexts (no authorizer) never reach checkout.
        if authorizer is not None:
            for warning in self._settings.optional_config_warnings():
                logger.warning(warning)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def gateway(self) -> RemoteGateway:
        return self._gateway

    @property
    def store(self) -> CatalogStore:
        return self._store

    @property
    def catalog(self) -> CatalogClient:
        return self._catalog

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def session(self) -> UserSessionClient | None:
        """The signed-in session, or ``None`` while signed out."""

        return self._session

    @property
    def user(self) -> User | None:
        return self._user

    async def sign_in(
        self,
        cognito_id: str,
        *,
        digits_user_id: str | None = None,
        digits_phone_number: str | None = None,
        twitter_user_id: str | None = None,
        twitter_username: str | None = None,
    ) -> User | None:
        """Register ``cognito_id`` with the backend and make it the active session.

        Returns ``None`` (and stays signed out) when registration fails. A
        failed favorites sync is logged but does not prevent sign-in.
        """

        session = UserSessionClient(cognito_id, self._gateway, contacts=self._contacts)
        if not await session.register_user(digits_user_id, digits_phone_number):
            logger.warning("Sign-in of %s aborted: registration failed", cognito_id)
            return None

        if not await session.sync_favorites():
            logger.info("Signed in %s without server favorites", cognito_id)

        user = User(
            cognito_id=cognito_id,
            digits_user_id=digits_user_id,
            digits_phone_number=digits_phone_number,
            twitter_user_id=twitter_user_id,
            twitter_username=twitter_username,
            favorites=tuple(session.favorites.products()),
        )
        self._session = session
        self._user = populate_with_local_contact(user, self._contacts)
        logger.info("Signed in %s", cognito_id)
        return self._user

    def sign_out(self) -> None:
        if self._session is not None:
            logger.info("Signed out %s", self._session.session_id)
        self._session = None
        self._user = None

    def checkout_service(self) -> CheckoutService:
        """Build a checkout service over the shared cart.

        Raises:
            RuntimeError: no payment authorizer was configured.
        """

        if self._authorizer is None:
            raise RuntimeError("AppContext was created without a payment authorizer")

        charge_base_url = self._settings.resolved_charge_base_url
        if self._charge_gateway is None and charge_base_url is not None:
            self._charge_gateway = RemoteGateway(
                charge_base_url,
                timeout=self._settings.request_timeout_seconds,
                transport=self._transport,
                slow_request_threshold=self._settings.slow_request_threshold,
            )

        return CheckoutService(
            self._cart,
            settings=self._settings,
            authorizer=self._authorizer,
            charge_gateway=self._charge_gateway,
            contacts=self._contacts,
        )

    async def aclose(self) -> None:
        if self._charge_gateway is not None:
            await self._charge_gateway.aclose()
            self._charge_gateway = None
        if self._owns_gateway:
            await self._gateway.aclose()

    async def __aenter__(self) -> AppContext:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["AppContext"]
