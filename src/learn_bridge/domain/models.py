"""Domain models for the Learn web services bridge."""

from dataclasses import dataclass
from enum import IntEnum


class FilterType(IntEnum):
    """User filter criteria understood by User.WS."""

    GET_USER_BY_NAME_WITH_AVAILABILITY = 6


@dataclass(frozen=True)
class Session:
    """Represents the active session with a Learn host."""

    host: str
    session_id: str | None = None
    is_registered: bool = False
    is_logged_in: bool = False


@dataclass(frozen=True)
class ToolRegistration:
    """Result of a successful proxy tool registration."""

    description: str
    initial_secret: str
    shared_secret: str
    granted_capabilities: frozenset[str]
    proxy_tool_guid: str | None = None


@dataclass(frozen=True)
class DataSourceEntry:
    """Maps a data source primary key to its batch uid."""

    internal_id: str
    external_key: str


@dataclass(frozen=True)
class UserFilter:
    """Filter sent to the user lookup capability."""

    names: tuple[str, ...]
    criterion: FilterType = FilterType.GET_USER_BY_NAME_WITH_AVAILABILITY

    @classmethod
    def for_user(cls, user_id: str | None) -> "UserFilter":
        """Build a single-user filter, rejecting blank identifiers."""
        if user_id is None or not user_id.strip():
            raise ValueError("User id must be a non-empty string")
        return cls(names=(user_id,))


@dataclass(frozen=True)
class UserRecord:
    """User profile returned by a successful lookup."""

    data_source_id: str
    external_person_key: str
    user_id: str
    given_name: str
    family_name: str
    student_id: str
    birth_date_epoch: int | None = None
