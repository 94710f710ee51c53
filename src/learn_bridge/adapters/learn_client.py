"""Learn web services client adapter."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from learn_bridge.adapters.soap import (
    LearnFault,
    LearnTransportError,
    Params,
    as_bool,
    as_list,
    build_envelope,
    parse_returns,
)
from learn_bridge.domain.models import UserFilter

GET_ALL_DATA_SOURCES = 1

_logger = logging.getLogger(__name__)


class ContextService(Protocol):
    """Context.WS operations available after login."""

    async def emulate_user(self, user_name: str) -> bool:
        """Run later calls with the visibility of ``user_name``."""


class UtilService(Protocol):
    """Util.WS operations available after login."""

    async def get_data_sources(self) -> list[dict[str, object]] | None:
        """Return raw DataSourceVO payloads, or None if the service returned nil."""


class UserService(Protocol):
    """User.WS operations available after login."""

    async def get_user(self, user_filter: UserFilter) -> list[dict[str, object]] | None:
        """Return raw UserVO payloads matching the filter."""


class LearnClient(Protocol):
    """Interface for the primary Learn web services handle."""

    async def initialize(self) -> str | None:
        """Request a new session and return its id, if one was generated."""

    async def register_tool(
        self,
        *,
        description: str,
        initial_secret: str,
        shared_secret: str,
        tool_methods: list[str],
        ticket_methods: list[str] | None = None,
    ) -> dict[str, object]:
        """Register the proxy tool and return the raw registration result."""

    async def login_tool(self, shared_secret: str, expected_life_seconds: int) -> bool:
        """Log the proxy tool into the current session."""

    async def logout(self) -> bool:
        """End the current session."""

    async def get_context_service(self) -> ContextService:
        """Return the Context.WS sub-capability."""

    async def get_util_service(self) -> UtilService:
        """Initialize and return the Util.WS sub-capability."""

    async def get_user_service(self) -> UserService:
        """Initialize and return the User.WS sub-capability."""

    def get_last_error(self) -> str:
        """Return the most recent diagnostic reported by the service."""

    async def close(self) -> None:
        """Release the underlying transport."""


LearnClientFactory = Callable[[str], LearnClient]


@dataclass
class HttpxLearnClient(LearnClient):
    """Learn SOAP client implemented with httpx."""

    base_url: str
    vendor_id: str
    program_id: str
    http_client: httpx.AsyncClient
    services_path: str = "/webapps/ws/services"
    timeout: float = 30.0
    session_id: str | None = None
    last_error: str = field(default="", init=False)

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        base_url: str,
        *,
        vendor_id: str,
        program_id: str,
        services_path: str = "/webapps/ws/services",
        timeout: float = 30.0,
        verify: bool = True,
    ) -> "HttpxLearnClient":
        """Create a Learn client with a managed httpx session."""
        return cls(
            base_url=base_url,
            vendor_id=vendor_id,
            program_id=program_id,
            http_client=httpx.AsyncClient(verify=verify),
            services_path=services_path,
            timeout=timeout,
        )

    async def initialize(self) -> str | None:
        """Call Context.WS initialize and remember the session id."""
        returns = await self.call("Context", "initialize", [])
        session_id = returns[0] if returns else None
        if not isinstance(session_id, str) or not session_id.strip():
            self.last_error = "NO session"
            return None
        self.session_id = session_id.strip()
        return self.session_id

    async def register_tool(
        self,
        *,
        description: str,
        initial_secret: str,
        shared_secret: str,
        tool_methods: list[str],
        ticket_methods: list[str] | None = None,
    ) -> dict[str, object]:
        """Call Context.WS registerTool."""
        returns = await self.call(
            "Context",
            "registerTool",
            [
                ("clientVendorId", self.vendor_id),
                ("clientProgramId", self.program_id),
                ("registrationPassword", initial_secret),
                ("description", description),
                ("initialSharedSecret", shared_secret),
                ("requiredToolMethods", tool_methods),
                ("requiredTicketMethods", ticket_methods),
            ],
        )
        raw = returns[0] if returns and isinstance(returns[0], dict) else {}
        status = as_bool(raw.get("status", False))
        failure_errors = [str(item) for item in as_list(raw.get("failureErrors"))]
        if not status:
            self.last_error = "; ".join(failure_errors) or (
                "Tool registration was rejected"
            )
        return {
            "status": status,
            "failureErrors": failure_errors,
            "proxyToolGuid": raw.get("proxyToolGuid"),
        }

    async def login_tool(self, shared_secret: str, expected_life_seconds: int) -> bool:
        """Call Context.WS loginTool."""
        returns = await self.call(
            "Context",
            "loginTool",
            [
                ("password", shared_secret),
                ("clientVendorId", self.vendor_id),
                ("clientProgramId", self.program_id),
                ("loginExtraInfo", None),
                ("expectedLifeSeconds", expected_life_seconds),
            ],
        )
        logged_in = bool(returns) and as_bool(returns[0])
        if not logged_in:
            self.last_error = "Tool login was rejected"
        return logged_in

    async def logout(self) -> bool:
        """Call Context.WS logout."""
        returns = await self.call("Context", "logout", [])
        return bool(returns) and as_bool(returns[0])

    async def get_context_service(self) -> ContextService:
        """Return the Context.WS port bound to this session."""
        return HttpxContextService(self)

    async def get_util_service(self) -> UtilService:
        """Initialize Util.WS for this session."""
        await self._initialize_port("Util", "initializeUtilWS")
        return HttpxUtilService(self)

    async def get_user_service(self) -> UserService:
        """Initialize User.WS for this session."""
        await self._initialize_port("User", "initializeUserWS")
        return HttpxUserService(self)

    def get_last_error(self) -> str:
        """Return the last fault or rejection message."""
        return self.last_error

    async def call(self, service: str, operation: str, params: Params) -> list[object]:
        """Send one SOAP operation and return its converted return values."""
        url = f"{self.base_url}{self.services_path}/{service}.WS"
        content = build_envelope(service, operation, params, self.session_id)
        _logger.debug("Calling %s.WS %s", service, operation)
        try:
            response = await self.http_client.post(
                url,
                content=content,
                headers={
                    "Content-Type": "text/xml; charset=utf-8",
                    "SOAPAction": f'"{operation}"',
                },
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            self.last_error = f"{service}.WS {operation} failed: {exc}"
            raise LearnTransportError(self.last_error) from exc
        try:
            returns = parse_returns(response.content)
        except LearnFault as fault:
            if response.is_success or _is_xml(response):
                self.last_error = str(fault)
                raise
            self.last_error = (
                f"{service}.WS {operation} failed with HTTP {response.status_code}"
            )
            raise LearnTransportError(self.last_error) from fault
        if not response.is_success:
            self.last_error = (
                f"{service}.WS {operation} failed with HTTP {response.status_code}"
            )
            raise LearnTransportError(self.last_error)
        return returns

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _initialize_port(self, service: str, operation: str) -> None:
        returns = await self.call(service, operation, [("ignore", True)])
        if returns and not as_bool(returns[0]):
            self.last_error = f"{service}.WS could not be initialized"
            raise LearnFault(self.last_error)


@dataclass
class HttpxContextService(ContextService):
    """Context.WS port sharing the primary client's session."""

    client: HttpxLearnClient

    async def emulate_user(self, user_name: str) -> bool:
        """Call Context.WS emulateUser."""
        returns = await self.client.call(
            "Context", "emulateUser", [("userToEmulate", user_name)]
        )
        return bool(returns) and as_bool(returns[0])


@dataclass
class HttpxUtilService(UtilService):
    """Util.WS port sharing the primary client's session."""

    client: HttpxLearnClient

    async def get_data_sources(self) -> list[dict[str, object]] | None:
        """Call Util.WS getDataSources for every data source."""
        returns = await self.client.call(
            "Util", "getDataSources", [("filter", {"filterType": GET_ALL_DATA_SOURCES})]
        )
        return _records(returns)


@dataclass
class HttpxUserService(UserService):
    """User.WS port sharing the primary client's session."""

    client: HttpxLearnClient

    async def get_user(self, user_filter: UserFilter) -> list[dict[str, object]] | None:
        """Call User.WS getUser with the given filter."""
        returns = await self.client.call(
            "User",
            "getUser",
            [
                (
                    "filter",
                    {
                        "filterType": int(user_filter.criterion),
                        "name": list(user_filter.names),
                    },
                )
            ],
        )
        return _records(returns)


def _records(returns: list[object]) -> list[dict[str, object]] | None:
    """Convert return values to records; a single nil return means no data."""
    if len(returns) == 1 and returns[0] is None:
        return None
    return [item for item in returns if isinstance(item, dict)]


def _is_xml(response: httpx.Response) -> bool:
    return "xml" in response.headers.get("content-type", "")
