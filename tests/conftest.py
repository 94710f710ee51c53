"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from learn_bridge.adapters.learn_client import (
    ContextService,
    LearnClient,
    UserService,
    UtilService,
)
from learn_bridge.adapters.soap import LearnFault, LearnTransportError
from learn_bridge.config import Settings
from learn_bridge.containers import AppContainer, build_container
from learn_bridge.domain.models import UserFilter
from learn_bridge.services.sessions import SessionManager


@dataclass
class FakeContextService(ContextService):
    """Context.WS fake that records emulated users."""

    emulated: list[str] = field(default_factory=list)
    accept: bool = True

    async def emulate_user(self, user_name: str) -> bool:
        self.emulated.append(user_name)
        return self.accept


@dataclass
class FakeUtilService(UtilService):
    """Util.WS fake returning a fixed catalog."""

    data_sources: list[dict[str, object]] | None = field(
        default_factory=lambda: [{"id": "ds1", "batchUid": "EXT1"}]
    )
    error: Exception | None = None
    calls: int = 0

    async def get_data_sources(self) -> list[dict[str, object]] | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.data_sources


@dataclass
class FakeUserService(UserService):
    """User.WS fake returning records per user id."""

    users: dict[str, list[dict[str, object]] | None] = field(default_factory=dict)
    error: Exception | None = None
    filters: list[UserFilter] = field(default_factory=list)

    async def get_user(self, user_filter: UserFilter) -> list[dict[str, object]] | None:
        self.filters.append(user_filter)
        if self.error is not None:
            raise self.error
        return self.users.get(user_filter.names[0], [])


@dataclass
class FakeLearnClient(LearnClient):
    """In-memory Learn client that records calls."""

    session_id: str | None = "session-123"
    register_status: bool = True
    login_result: bool = True
    logout_result: bool = True
    last_error: str = ""
    fail_on: set[str] = field(default_factory=set)
    context: FakeContextService = field(default_factory=FakeContextService)
    util: FakeUtilService = field(default_factory=FakeUtilService)
    user: FakeUserService = field(default_factory=FakeUserService)
    calls: list[str] = field(default_factory=list)
    registered_methods: list[str] = field(default_factory=list)
    closed: bool = False

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            self.last_error = f"{name} fault"
            raise LearnFault(self.last_error)

    async def initialize(self) -> str | None:
        self._record("initialize")
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
        self._record("register_tool")
        self.registered_methods = list(tool_methods)
        if not self.register_status:
            self.last_error = "Invalid registration password"
        return {
            "status": self.register_status,
            "failureErrors": [] if self.register_status else [self.last_error],
            "proxyToolGuid": "guid-1" if self.register_status else None,
        }

    async def login_tool(self, shared_secret: str, expected_life_seconds: int) -> bool:
        self._record("login_tool")
        return self.login_result

    async def logout(self) -> bool:
        self._record("logout")
        return self.logout_result

    async def get_context_service(self) -> ContextService:
        self._record("get_context_service")
        return self.context

    async def get_util_service(self) -> UtilService:
        self._record("get_util_service")
        return self.util

    async def get_user_service(self) -> UserService:
        self._record("get_user_service")
        return self.user

    def get_last_error(self) -> str:
        return self.last_error

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeClientFactory:
    """Client factory handing out one fake client."""

    client: FakeLearnClient = field(default_factory=FakeLearnClient)
    hosts: list[str] = field(default_factory=list)
    unreachable: bool = False

    def __call__(self, host: str) -> LearnClient:
        self.hosts.append(host)
        if self.unreachable:
            raise LearnTransportError(f"Cannot reach {host}")
        return self.client


def bob_payload(**overrides: object) -> dict[str, object]:
    """Return a raw UserVO payload for user bob."""
    payload: dict[str, object] = {
        "dataSourceId": "ds1",
        "userBatchUid": "bob.batch",
        "name": "bob",
        "studentId": "S-42",
        "birthDate": "0",
        "extendedInfo": {"givenName": "Bob", "familyName": "Builder"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings() -> Settings:
    return Settings(vendor_id="TestVendor", program_id="testTool")


@pytest.fixture
def client() -> FakeLearnClient:
    return FakeLearnClient()


@pytest.fixture
def client_factory(client: FakeLearnClient) -> FakeClientFactory:
    return FakeClientFactory(client=client)


@pytest.fixture
def session_manager(client_factory: FakeClientFactory) -> SessionManager:
    return SessionManager(client_factory=client_factory)


@pytest.fixture
def container(settings: Settings, client_factory: FakeClientFactory) -> AppContainer:
    return build_container(settings, client_factory=client_factory)
