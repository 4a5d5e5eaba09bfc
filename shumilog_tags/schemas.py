"""
Pydantic schemas for the tag engine.

Records passed in and out of the service layer. The service layer never hands
SQLAlchemy objects to its callers; everything crosses the boundary as one of
these plain models.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .core.config import settings

# Sort modes for outgoing associations
AssociationSort = Literal["order", "recent"]


def _reject_blank_name(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError("Tag name must be a non-empty string")
    return value


# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagCreate(BaseModel):
    """
    Input for creating a tag.

    Example:
    {
        "name": "Attack on Titan",
        "description": "Popular #anime series, see #{Studio WIT}",
        "metadata": {"year": 2013}
    }
    """

    name: str = Field(
        ..., min_length=1, max_length=settings.TAG_NAME_MAX_LENGTH, description="Unique tag name"
    )
    description: str | None = Field(None, description="Free text, may contain hashtags")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Open key/value map")

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _reject_blank_name(value)


class TagUpdate(BaseModel):
    """
    Partial update of a tag.

    Only fields that were actually passed are applied:
        TagUpdate(description=None)   -> clears the description
        TagUpdate()                   -> nothing to update (rejected by the service)
    """

    name: str | None = Field(None, min_length=1, max_length=settings.TAG_NAME_MAX_LENGTH)
    description: str | None = None
    metadata: dict[str, Any] | None = None

    # Only runs when name is passed explicitly, so an explicit null is rejected
    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str:
        return _reject_blank_name(value)

    def changes(self) -> dict[str, Any]:
        """Fields that were provided, with a null metadata normalised to {}."""
        data = self.model_dump(exclude_unset=True)
        if "metadata" in data and data["metadata"] is None:
            data["metadata"] = {}
        return data


class TagRead(BaseModel):
    """A tag as returned by the service layer."""

    id: str
    name: str
    description: str | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("meta", "metadata")
    )
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagSearchParams(BaseModel):
    """Search/list request. The search engine clamps limit and offset."""

    query: str | None = None
    limit: int | None = None
    offset: int | None = None

    @field_validator("query")
    @classmethod
    def blank_query_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class TagPage(BaseModel):
    """One page of tags plus the total number of matches."""

    items: list[TagRead]
    total: int
    limit: int
    offset: int
    has_more: bool


class TagUsageStats(BaseModel):
    """Derived usage statistics (never stored)."""

    tag_id: str
    usage_count: int = 0
    last_used: datetime | None = None


# ============================================================================
# LOG SCHEMAS
# ============================================================================


class LogSummary(BaseModel):
    """Short view of a log, used in tag details."""

    id: str
    user_id: str
    title: str
    is_public: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagDetail(TagRead):
    """
    Tag with its usage and outgoing associations.

    Used by the tag detail page:
    {
        ...tag fields...,
        "log_count": 12,
        "recent_logs": [...],
        "associated_tags": [...]
    }
    """

    log_count: int
    recent_logs: list[LogSummary]
    associated_tags: list[TagRead]


# ============================================================================
# REVISION SCHEMAS
# ============================================================================


class TagRevisionRead(BaseModel):
    """Immutable snapshot of a tag."""

    id: str
    tag_id: str
    revision_number: int
    name: str
    description: str | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("meta", "metadata")
    )
    created_at: datetime
    created_by: str

    model_config = ConfigDict(from_attributes=True)
