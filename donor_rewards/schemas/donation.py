"""Input records handed to the engine by the persistence layer.

Records come straight out of the document store, so field names vary
(``distanceKm`` vs ``distance``, ``date`` vs ``timestamp``). Each field
accepts the spellings seen in stored documents; anything else on the
document is ignored rather than rejected.
"""

import math
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from donor_rewards.constants import ANONYMOUS_DONOR_NAME
from donor_rewards.errors import InvalidArgumentError
from donor_rewards.schemas.enums import DonationStatus
from donor_rewards.utils.time_utils import as_utc


def _normalize_blood_type(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip().upper()
        return value or None
    return value


class DonationRecord(BaseModel):
    """One donation event. Immutable; the engine only reads it."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    status: DonationStatus = Field(description="completed, pending, upcoming or cancelled")
    timestamp: datetime = Field(
        validation_alias=AliasChoices("timestamp", "date", "donatedAt", "donated_at"),
        description="When the donation happened (or is scheduled)",
    )
    urgency: Optional[str] = Field(
        default=None,
        description="Urgency of the answered request; unrecognized values score 0",
    )
    distance_km: Optional[float] = Field(
        default=None,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("distance_km", "distanceKm", "distance"),
    )
    blood_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("blood_type", "bloodType"),
    )
    response_time_seconds: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("response_time_seconds", "responseTimeSeconds", "responseTime"),
        description="Seconds between the emergency post and the donor's commitment",
    )
    is_first_donation: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_first_donation", "isFirstDonation"),
    )

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, Enum):
            return value.strip().lower()
        return value

    @field_validator("urgency", mode="before")
    @classmethod
    def _lower_urgency(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("blood_type", mode="before")
    @classmethod
    def _upper_blood_type(cls, value: Any) -> Any:
        return _normalize_blood_type(value)

    @field_validator("response_time_seconds", mode="before")
    @classmethod
    def _whole_seconds(cls, value: Any) -> Any:
        if isinstance(value, float):
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"response time must be a finite non-negative number of seconds, got {value}")
            return int(value)
        return value

    @field_validator("is_first_donation", mode="before")
    @classmethod
    def _none_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def is_completed(self) -> bool:
        return self.status == DonationStatus.COMPLETED

    @property
    def sort_key(self) -> datetime:
        """Timestamp normalized for ordering across naive and aware records."""
        return as_utc(self.timestamp)


class DonorProfile(BaseModel):
    """Donor attributes the engine needs. Owned by the user-profile service."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    donor_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("donor_id", "donorId", "id", "userId", "uid"),
    )
    blood_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("blood_type", "bloodType"),
    )
    display_name: str = Field(
        default=ANONYMOUS_DONOR_NAME,
        validation_alias=AliasChoices("display_name", "displayName", "name"),
    )

    @field_validator("donor_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("blood_type", mode="before")
    @classmethod
    def _upper_blood_type(cls, value: Any) -> Any:
        return _normalize_blood_type(value)

    @field_validator("display_name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return ANONYMOUS_DONOR_NAME
        return value


class DonorHistory(BaseModel):
    """A donor and their donation history, as handed to the leaderboard.

    Accepts either ``{"profile": {...}, "donations": [...]}`` or a flat user
    document carrying a ``donations`` list next to the profile fields.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    profile: DonorProfile
    donations: list[DonationRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _split_flat_document(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "profile" not in data:
            profile = {k: v for k, v in data.items() if k != "donations"}
            return {"profile": profile, "donations": data.get("donations", [])}
        return data


def coerce_donations(donations: Any) -> list[DonationRecord]:
    """Validate the ``donations`` argument of every engine entry point.

    Raises:
        InvalidArgumentError: ``donations`` is None or not a list/tuple.
        pydantic.ValidationError: an element is not a well-formed record.
    """
    if not isinstance(donations, (list, tuple)):
        raise InvalidArgumentError(
            f"donations must be a list of donation records, got {type(donations).__name__}"
        )
    return [d if isinstance(d, DonationRecord) else DonationRecord.model_validate(d) for d in donations]


def coerce_profile(profile: Any) -> DonorProfile:
    """Accept a DonorProfile or a mapping; anything else is a programming error."""
    if isinstance(profile, DonorProfile):
        return profile
    if isinstance(profile, Mapping):
        return DonorProfile.model_validate(profile)
    raise InvalidArgumentError(f"profile must be a donor profile, got {type(profile).__name__}")


def completed_in_time_order(donations: list[DonationRecord]) -> list[DonationRecord]:
    """Completed donations, oldest first. Ties keep input order."""
    return sorted((d for d in donations if d.is_completed), key=lambda d: d.sort_key)
