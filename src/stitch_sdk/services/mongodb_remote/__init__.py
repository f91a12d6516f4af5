"""Remote MongoDB service client."""

from __future__ import annotations

from .change_stream import ChangeStream
from .client import RemoteMongoClient, RemoteMongoDatabase
from .collection import RemoteMongoCollection
from .iterables import RemoteAggregateIterable, RemoteFindIterable, RemoteMongoCursor
from .models import (
    ChangeEvent,
    CompactChangeEvent,
    MongoNamespace,
    OperationType,
    RemoteDeleteResult,
    RemoteInsertManyResult,
    RemoteInsertOneResult,
    RemoteUpdateResult,
    UpdateDescription,
)

__all__ = [
    "ChangeEvent",
    "ChangeStream",
    "CompactChangeEvent",
    "MongoNamespace",
    "OperationType",
    "RemoteAggregateIterable",
    "RemoteDeleteResult",
    "RemoteFindIterable",
    "RemoteInsertManyResult",
    "RemoteInsertOneResult",
    "RemoteMongoClient",
    "RemoteMongoCollection",
    "RemoteMongoCursor",
    "RemoteMongoDatabase",
    "RemoteUpdateResult",
    "UpdateDescription",
]
