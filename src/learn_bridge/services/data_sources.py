"""Data source catalog cache."""

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from learn_bridge.adapters.soap import LearnServiceError
from learn_bridge.domain.learn_payloads import DataSourcePayload
from learn_bridge.domain.models import DataSourceEntry
from learn_bridge.domain.outcomes import ErrorKind, Outcome
from learn_bridge.services.sessions import SessionManager, SessionStateError

_logger = logging.getLogger(__name__)


@dataclass
class DataSourceCache:
    """Loads the data source catalog once and resolves ids to batch uids."""

    session_manager: SessionManager
    _keys: dict[str, str] | None = field(default=None, init=False, repr=False)

    @property
    def loaded(self) -> bool:
        """Return True once the catalog has been loaded."""
        return self._keys is not None

    @property
    def entries(self) -> list[DataSourceEntry]:
        """Return the loaded catalog entries."""
        if self._keys is None:
            return []
        return [
            DataSourceEntry(internal_id=internal_id, external_key=external_key)
            for internal_id, external_key in self._keys.items()
        ]

    async def load(self) -> Outcome[bool]:
        """Pull the catalog from Util.WS; later calls keep the first result."""
        if self._keys is not None:
            return Outcome.success(True)
        util = self.session_manager.util
        try:
            payload = await util.get_data_sources()
        except LearnServiceError as exc:
            return Outcome.failure(ErrorKind.REMOTE_FAULT, str(exc))
        if payload is None:
            return Outcome.failure(
                ErrorKind.UNAVAILABLE,
                "Data source catalog is unavailable: "
                f"{self.session_manager.get_last_remote_diagnostic()}",
            )
        keys: dict[str, str] = {}
        for item in payload:
            try:
                source = DataSourcePayload.model_validate(item)
            except ValidationError as exc:
                _logger.warning("Skipping malformed data source entry: %s", exc)
                continue
            if not source.batch_uid:
                _logger.warning("Data source %s has no batch uid; skipped", source.id)
                continue
            if source.id in keys:
                _logger.warning("Duplicate data source id %s ignored", source.id)
                continue
            keys[source.id] = source.batch_uid
        self._keys = keys
        _logger.info("Loaded %s data sources", len(keys))
        return Outcome.success(True)

    def resolve(self, internal_id: str) -> Outcome[str]:
        """Return the batch uid for a data source id."""
        if self._keys is None:
            raise SessionStateError("Data sources must be loaded before resolving")
        external_key = self._keys.get(internal_id)
        if external_key is None:
            return Outcome.failure(
                ErrorKind.KEY_NOT_FOUND, f"Unknown data source id {internal_id}"
            )
        return Outcome.success(external_key)
