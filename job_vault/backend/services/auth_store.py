"""
Current identity and session lifecycle.

``loading`` stays True until the gateway delivers its first session event.
Consumers must read that as "unknown", not as "signed out".
"""
import logging
from typing import Optional

from .observable import Observable
from ..exceptions import AuthError
from ..gateway.base import DataGateway
from ..schemas import AuthEvent, AuthSession, Identity

logger = logging.getLogger(__name__)


class AuthStore(Observable):

    def __init__(self, gateway: DataGateway):
        super().__init__()
        self._gateway = gateway
        self._user: Optional[Identity] = None
        self._loading = True
        self._unsubscribe = gateway.on_session_change(self._handle_session_change)

    @property
    def user(self) -> Optional[Identity]:
        return self._user

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_resolving(self) -> bool:
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return not self._loading and self._user is not None

    def _handle_session_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        self._set_user(session.user if session else None)
        logger.debug("Session change %s: user=%s", event.value, self._user.id if self._user else None)

    def _set_user(self, user: Optional[Identity]) -> None:
        self._user = user
        self._loading = False
        self._notify()

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> Identity:
        session = await self._gateway.sign_up(email, password, full_name)
        logger.info("Registered %s", session.user.email)
        return session.user

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        session = await self._gateway.sign_in_with_password(email, password)
        logger.info("Signed in %s", session.user.email)
        return session.user

    async def refresh_session(self) -> Identity:
        session = await self._gateway.refresh_session()
        return session.user

    async def sign_out(self) -> None:
        """Ask the gateway to end the session; local identity is cleared either way."""
        try:
            await self._gateway.sign_out()
        except Exception as exc:
            logger.warning("Sign-out request failed, clearing local session anyway: %s", exc)
        finally:
            # The gateway's SIGNED_OUT event has usually cleared it already
            if self._user is not None or self._loading:
                self._set_user(None)

    async def delete_account(self) -> None:
        """
        Purge every record of the current user, delete the identity, then sign out.

        Raises:
            AuthError: If nobody is signed in or the identity cannot be deleted.
            PersistenceError: If the user's records cannot be purged.
        """
        if self._user is None:
            raise AuthError("Not signed in")
        user_id = self._user.id
        deleted = await self._gateway.delete_records_for_owner(user_id)
        logger.info("Purged %d applications for %s", deleted, user_id)
        await self._gateway.delete_user()
        await self.sign_out()

    def close(self) -> None:
        self._unsubscribe()
        self._clear_observers()
