"""Single-user lookup against User.WS."""

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from learn_bridge.adapters.soap import LearnServiceError
from learn_bridge.domain.learn_payloads import UserPayload
from learn_bridge.domain.models import UserFilter, UserRecord
from learn_bridge.domain.outcomes import ErrorKind, Outcome
from learn_bridge.services.sessions import SessionManager, SessionStateError

_logger = logging.getLogger(__name__)


@dataclass
class UserLookupRequest:
    """Looks up one user by user id and keeps the first matching record."""

    session_manager: SessionManager
    _record: UserRecord | None = field(default=None, init=False, repr=False)

    async def execute(self, user_id: str | None) -> Outcome[UserRecord]:
        """Build a by-name filter for ``user_id`` and dispatch it."""
        try:
            user_filter = UserFilter.for_user(user_id)
        except ValueError as exc:
            return Outcome.failure(ErrorKind.INVALID_IDENTIFIER, str(exc))

        user_service = self.session_manager.user
        try:
            payload = await user_service.get_user(user_filter)
        except LearnServiceError as exc:
            return Outcome.failure(ErrorKind.REMOTE_FAULT, str(exc))
        if payload is None:
            # A nil result usually means User.WS is not enabled for the tool.
            return Outcome.failure(
                ErrorKind.UNAVAILABLE,
                "User lookup is unavailable: "
                f"{self.session_manager.get_last_remote_diagnostic()}",
            )
        if not payload:
            return Outcome.failure(ErrorKind.NO_RESULT, f"No user matched {user_id}")
        if len(payload) > 1:
            _logger.warning(
                "User id %s matched %s records; keeping the first",
                user_id,
                len(payload),
            )
        try:
            user = UserPayload.model_validate(payload[0])
        except ValidationError as exc:
            return Outcome.failure(ErrorKind.NO_RESULT, f"Malformed user record: {exc}")
        self._record = _to_record(user)
        return Outcome.success(self._record)

    def get(self) -> UserRecord:
        """Return the record of the last successful ``execute``."""
        if self._record is None:
            raise SessionStateError("No user record; execute a lookup first")
        return self._record


def _to_record(user: UserPayload) -> UserRecord:
    extended = user.extended_info
    return UserRecord(
        data_source_id=user.data_source_id,
        external_person_key=user.user_batch_uid or "",
        user_id=user.name,
        given_name=(extended.given_name if extended else None) or "",
        family_name=(extended.family_name if extended else None) or "",
        student_id=user.student_id or "",
        birth_date_epoch=user.birth_date,
    )
