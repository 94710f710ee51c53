"""Models for validating Learn web service payloads."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DataSourcePayload(BaseModel):
    """DataSourceVO fields used by the bridge."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    batch_uid: str | None = Field(default=None, alias="batchUid")


class ExtendedInfoPayload(BaseModel):
    """Subset of UserExtendedInfoVO."""

    model_config = ConfigDict(extra="ignore")

    given_name: str | None = Field(default=None, alias="givenName")
    family_name: str | None = Field(default=None, alias="familyName")


class UserPayload(BaseModel):
    """UserVO fields rendered in the snapshot record."""

    model_config = ConfigDict(extra="ignore")

    data_source_id: str = Field(alias="dataSourceId")
    user_batch_uid: str | None = Field(default=None, alias="userBatchUid")
    name: str = Field(min_length=1)
    student_id: str | None = Field(default=None, alias="studentId")
    birth_date: int | None = Field(default=None, alias="birthDate")
    extended_info: ExtendedInfoPayload | None = Field(
        default=None, alias="extendedInfo"
    )

    @field_validator("birth_date", mode="before")
    @classmethod
    def _blank_birth_date(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value
