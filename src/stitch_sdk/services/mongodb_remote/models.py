"""Result and change event models for remote MongoDB operations."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DocumentT = TypeVar("DocumentT")


class _RemoteModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MongoNamespace(_RemoteModel):
    """Database and collection name pair."""

    database: str = Field(alias="db")
    collection: str = Field(alias="coll")

    def __str__(self) -> str:
        return f"{self.database}.{self.collection}"


class RemoteInsertOneResult(_RemoteModel):
    inserted_id: Any


class RemoteInsertManyResult(_RemoteModel):
    inserted_ids: dict[int, Any]


class RemoteUpdateResult(_RemoteModel):
    matched_count: int
    modified_count: int
    upserted_id: Any = None


class RemoteDeleteResult(_RemoteModel):
    deleted_count: int


class OperationType(StrEnum):
    """Kind of change a change event describes."""

    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"
    UPDATE = "update"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> OperationType:
        return cls.UNKNOWN


class UpdateDescription(_RemoteModel):
    """Fields set and removed by an update."""

    updated_fields: dict[str, Any] = Field(default_factory=dict)
    removed_fields: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.updated_fields and not self.removed_fields


class ChangeEvent(_RemoteModel, Generic[DocumentT]):
    """A full change event from a watched collection."""

    id: Any = Field(default=None, alias="_id")
    operation_type: OperationType
    full_document: DocumentT | None = None
    ns: MongoNamespace | None = None
    document_key: dict[str, Any] = Field(default_factory=dict)
    update_description: UpdateDescription | None = None


_COMPACT_OPERATIONS = {
    "i": OperationType.INSERT,
    "d": OperationType.DELETE,
    "r": OperationType.REPLACE,
    "u": OperationType.UPDATE,
}


class CompactUpdateDescription(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    sets: dict[str, Any] = Field(default_factory=dict)
    unsets: list[str] = Field(default_factory=list)

    def to_update_description(self) -> UpdateDescription:
        return UpdateDescription(updated_fields=self.sets, removed_fields=self.unsets)


class CompactChangeEvent(BaseModel, Generic[DocumentT]):
    """A change event in the compact wire format.

    Only the document key is always present; the full document is sent for
    inserts and replaces, and a hash of the stored document accompanies
    updates.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    operation_type: OperationType = Field(alias="op")
    document_key: dict[str, Any] = Field(default_factory=dict, alias="id")
    full_document: DocumentT | None = Field(default=None, alias="d")
    update_description: CompactUpdateDescription | None = Field(default=None, alias="ud")
    stitch_document_hash: int | None = Field(default=None, alias="sdh")

    @field_validator("operation_type", mode="before")
    @classmethod
    def expand_operation(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _COMPACT_OPERATIONS.get(v, v)
        return v

    @field_validator("document_key", mode="before")
    @classmethod
    def wrap_document_key(cls, v: Any) -> Any:
        if v is not None and not isinstance(v, dict):
            return {"_id": v}
        return v
