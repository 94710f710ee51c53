"""Snapshot flat-file rendering of user records."""

from learn_bridge.domain.models import UserRecord
from learn_bridge.domain.outcomes import Outcome
from learn_bridge.services.data_sources import DataSourceCache
from learn_bridge.services.dates import to_calendar_date

SNAPSHOT_COLUMNS = (
    "DATA_SOURCE_KEY",
    "EXTERNAL_PERSON_KEY",
    "USER_ID",
    "FIRSTNAME",
    "LASTNAME",
    "STUDENT_ID",
    "BIRTHDATE",
)
SNAPSHOT_DELIMITER = "|"
SNAPSHOT_HEADER = SNAPSHOT_DELIMITER.join(SNAPSHOT_COLUMNS)


def render_snapshot_row(
    record: UserRecord, data_sources: DataSourceCache
) -> Outcome[str]:
    """Render a user record as one pipe-delimited snapshot row."""
    data_source_key = data_sources.resolve(record.data_source_id)
    if not data_source_key.ok:
        return Outcome(error=data_source_key.error)
    birth_date = to_calendar_date(record.birth_date_epoch)
    fields = [
        data_source_key.unwrap(),
        record.external_person_key,
        record.user_id,
        record.given_name,
        record.family_name,
        record.student_id,
        birth_date.unwrap() if birth_date.ok else "",
    ]
    return Outcome.success(SNAPSHOT_DELIMITER.join(fields))
