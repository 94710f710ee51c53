"""Session state machine for the Learn proxy tool."""

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import TracebackType

from learn_bridge.adapters.learn_client import (
    ContextService,
    LearnClient,
    LearnClientFactory,
    UserService,
    UtilService,
)
from learn_bridge.adapters.soap import LearnServiceError
from learn_bridge.domain.models import Session, ToolRegistration
from learn_bridge.domain.outcomes import ErrorKind, Outcome
from learn_bridge.learn_entitlements import tool_entitlements

_logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    """Lifecycle states of a proxy tool session."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    REGISTERED = "REGISTERED"
    LOGGED_IN = "LOGGED_IN"
    WRAPPERS_READY = "WRAPPERS_READY"
    CLOSED = "CLOSED"


class SessionStateError(RuntimeError):
    """Raised when an operation is called from a state that does not allow it."""


@dataclass
class SessionManager:
    """Owns the connection, login and logout of a single Learn session.

    Operations return an ``Outcome``; calling one out of order raises
    ``SessionStateError``. Use ``async with`` so ``logout`` always runs.
    """

    client_factory: LearnClientFactory
    session_lifetime_seconds: int = 60000
    emulate_user: str | None = "administrator"
    state: SessionState = SessionState.DISCONNECTED
    session: Session | None = None
    registration: ToolRegistration | None = None
    _client: LearnClient | None = field(default=None, repr=False)
    _context: ContextService | None = field(default=None, repr=False)
    _util: UtilService | None = field(default=None, repr=False)
    _user: UserService | None = field(default=None, repr=False)

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.logout()

    async def connect(self, host: str) -> Outcome[Session]:
        """Open a channel to ``host`` and request a session id."""
        self._require(SessionState.DISCONNECTED, action="connect")
        try:
            self._client = self.client_factory(host)
            session_id = await self._client.initialize()
        except (LearnServiceError, ValueError) as exc:
            _logger.error("Unable to reach host %s: %s", host, exc)
            return Outcome.failure(ErrorKind.TRANSPORT_FAILURE, str(exc))
        if not session_id:
            return Outcome.failure(
                ErrorKind.NO_SESSION, f"Host {host} did not generate a session"
            )
        self.session = Session(host=host, session_id=session_id)
        self.state = SessionState.CONNECTED
        _logger.info("Session generated: %s", session_id)
        return Outcome.success(self.session)

    async def register(
        self,
        description: str,
        initial_secret: str | None,
        shared_secret: str | None,
        capabilities: list[str] | None = None,
    ) -> Outcome[bool]:
        """Register the proxy tool with the host.

        A rejected registration is ``Outcome.success(False)``; the reason is
        available from ``get_last_remote_diagnostic``.
        """
        self._require(SessionState.CONNECTED, action="register")
        if not initial_secret or not shared_secret:
            return Outcome.failure(
                ErrorKind.MISSING_ARGUMENTS,
                "Registration needs both the initial and the shared secret",
            )
        requested = capabilities if capabilities is not None else tool_entitlements()
        try:
            result = await self._active_client.register_tool(
                description=description,
                initial_secret=initial_secret,
                shared_secret=shared_secret,
                tool_methods=requested,
            )
        except LearnServiceError as exc:
            return Outcome.failure(ErrorKind.REMOTE_FAULT, str(exc))
        if not result.get("status"):
            _logger.warning(
                "Tool registration rejected: %s", self.get_last_remote_diagnostic()
            )
            return Outcome.success(False)
        guid = result.get("proxyToolGuid")
        self.registration = ToolRegistration(
            description=description,
            initial_secret=initial_secret,
            shared_secret=shared_secret,
            granted_capabilities=frozenset(requested),
            proxy_tool_guid=str(guid) if guid else None,
        )
        self.session = replace(self._active_session, is_registered=True)
        self.state = SessionState.REGISTERED
        return Outcome.success(True)

    async def login(self, shared_secret: str | None) -> Outcome[bool]:
        """Log the proxy tool into the connected session."""
        self._require(
            SessionState.CONNECTED, SessionState.REGISTERED, action="login"
        )
        if not shared_secret:
            return Outcome.failure(
                ErrorKind.MISSING_ARGUMENTS, "Login needs the shared secret"
            )
        try:
            logged_in = await self._active_client.login_tool(
                shared_secret, self.session_lifetime_seconds
            )
        except LearnServiceError as exc:
            return Outcome.failure(ErrorKind.REMOTE_FAULT, str(exc))
        if not logged_in:
            return Outcome.success(False)
        self.session = replace(self._active_session, is_logged_in=True)
        self.state = SessionState.LOGGED_IN
        _logger.info("Logged into host as proxy tool")
        return Outcome.success(True)

    async def initialize_sub_wrappers(self) -> Outcome[bool]:
        """Acquire the context, util and user capabilities.

        When ``emulate_user`` is set, the context capability emulates that
        user so that disabled and hidden records are visible to lookups.
        """
        self._require(SessionState.LOGGED_IN, action="initialize sub-wrappers")
        client = self._active_client
        try:
            context = await client.get_context_service()
            if self.emulate_user and not await context.emulate_user(self.emulate_user):
                _logger.warning(
                    "Host refused to emulate %s; hidden records stay hidden",
                    self.emulate_user,
                )
            util = await client.get_util_service()
            user = await client.get_user_service()
        except LearnServiceError as exc:
            return Outcome.failure(ErrorKind.REMOTE_FAULT, str(exc))
        self._context, self._util, self._user = context, util, user
        self.state = SessionState.WRAPPERS_READY
        return Outcome.success(True)

    async def logout(self) -> None:
        """Best-effort logout; failures are logged, never raised."""
        if self.state is SessionState.CLOSED:
            # The handle was released by the first logout; nothing left to call.
            return
        client = self._client
        if client is not None:
            try:
                if await client.logout():
                    _logger.info("Logged out successfully")
                else:
                    _logger.warning(
                        "There were issues logging out: %s", client.get_last_error()
                    )
            except LearnServiceError as exc:
                _logger.warning("There were issues logging out: %s", exc)
            finally:
                await client.close()
        self._client = self._context = self._util = self._user = None
        self.session = None
        self.registration = None
        self.state = SessionState.CLOSED

    def get_last_remote_diagnostic(self) -> str:
        """Return the last diagnostic text reported by the host."""
        if self._client is None:
            return ""
        return self._client.get_last_error()

    @property
    def util(self) -> UtilService:
        """Util.WS capability, available once sub-wrappers are ready."""
        self._require(SessionState.WRAPPERS_READY, action="use Util.WS")
        if self._util is None:
            raise SessionStateError("Util.WS capability was not acquired")
        return self._util

    @property
    def user(self) -> UserService:
        """User.WS capability, available once sub-wrappers are ready."""
        self._require(SessionState.WRAPPERS_READY, action="use User.WS")
        if self._user is None:
            raise SessionStateError("User.WS capability was not acquired")
        return self._user

    @property
    def _active_client(self) -> LearnClient:
        if self._client is None:
            raise SessionStateError("No channel is open; connect first")
        return self._client

    @property
    def _active_session(self) -> Session:
        if self.session is None:
            raise SessionStateError("No session is active; connect first")
        return self.session

    def _require(self, *allowed: SessionState, action: str) -> None:
        if self.state not in allowed:
            expected = ", ".join(state.value for state in allowed)
            raise SessionStateError(
                f"Cannot {action} in state {self.state.value}; expected {expected}"
            )
