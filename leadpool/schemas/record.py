"""Normalized record model shared by companies and shared (Facebook) leads."""

from datetime import datetime, timezone
from typing import Any, FrozenSet, List, Mapping, Optional
from uuid import UUID

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from typing_extensions import Annotated

from leadpool.core.exceptions import DataIntegrityError
from leadpool.schemas.common import Category, DeletionState, Origin, Role


def _stringify_id(value: Any) -> Any:
    """Ids arrive as UUIDs, ints or strings depending on the source table."""
    if isinstance(value, (UUID, int)) and not isinstance(value, bool):
        return str(value)
    return value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


RecordId = Annotated[str, BeforeValidator(_stringify_id)]
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class Comment(BaseModel):
    """A categorized free-text note.  Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: RecordId
    author_id: Optional[RecordId] = Field(
        None, validation_alias=AliasChoices("author_id", "user_id")
    )
    text: str = Field("", validation_alias=AliasChoices("text", "comment_text"))
    category: Category
    created_at: UtcDatetime


class Record(BaseModel):
    """A company or a shared lead together with its comment history.

    ``deletion_state`` of ``None`` is read as ``ACTIVE``.  The deletion
    metadata invariant is *not* enforced here so that malformed rows can
    still be represented and reported; see :func:`check_integrity`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: RecordId
    origin: Origin
    assigned_to: Optional[RecordId] = Field(
        None, validation_alias=AliasChoices("assigned_to", "assigned_to_id")
    )
    assigned_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    deletion_state: DeletionState = DeletionState.ACTIVE
    deleted_at: Optional[UtcDatetime] = None
    deleted_by: Optional[RecordId] = Field(
        None, validation_alias=AliasChoices("deleted_by", "deleted_by_id")
    )
    comments: List[Comment] = Field(default_factory=list)

    @field_validator("deletion_state", mode="before")
    @classmethod
    def null_state_is_active(cls, value: Any) -> Any:
        return DeletionState.ACTIVE if value is None else value

    @property
    def is_active(self) -> bool:
        return self.deletion_state == DeletionState.ACTIVE


class ShareGrant(BaseModel):
    """Authorizes one employee to view one shared lead."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lead_id: RecordId = Field(
        ..., validation_alias=AliasChoices("lead_id", "facebook_data_id")
    )
    employee_id: RecordId
    shared_at: Optional[UtcDatetime] = Field(
        None, validation_alias=AliasChoices("shared_at", "created_at")
    )


class ActorContext(BaseModel):
    """Who is asking: role, id and (for team leads) the team roster."""

    model_config = ConfigDict(frozen=True)

    role: Role
    user_id: RecordId
    team_member_ids: FrozenSet[RecordId] = frozenset()

    def manages(self, user_id: Optional[str]) -> bool:
        """Return ``True`` if *user_id* is this actor or one of its team members."""
        if user_id is None:
            return False
        return user_id == self.user_id or user_id in self.team_member_ids


def check_integrity(record: Record) -> Record:
    """Verify the deletion-metadata invariant and return *record* unchanged.

    ``deleted_at``/``deleted_by`` must both be set when the record has left
    ``ACTIVE`` and both be empty while it is ``ACTIVE``.
    """
    has_at = record.deleted_at is not None
    has_by = record.deleted_by is not None
    if record.is_active:
        if has_at or has_by:
            raise DataIntegrityError(
                f"Record {record.id} is active but carries deletion metadata",
                record_id=record.id,
            )
    elif not (has_at and has_by):
        raise DataIntegrityError(
            f"Record {record.id} is {record.deletion_state.value} "
            "without deleted_at/deleted_by",
            record_id=record.id,
        )
    return record


def normalize_record(raw: Mapping[str, Any], origin: Optional[Origin] = None) -> Record:
    """Build a validated :class:`Record` from a raw store row.

    Unknown category or deletion-state strings are rejected rather than
    coerced.  Every failure surfaces as :class:`DataIntegrityError`.
    """
    data = dict(raw)
    if origin is not None:
        data.setdefault("origin", origin)
    try:
        record = Record.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors()
        )
        raise DataIntegrityError(
            f"Malformed record {data.get('id')!r}: invalid {fields}",
            record_id=_stringify_id(data.get("id")),
        ) from exc
    return check_integrity(record)
