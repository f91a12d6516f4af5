"""Entry points to the remote MongoDB service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar, overload

from .collection import RemoteMongoCollection
from .models import MongoNamespace

if TYPE_CHECKING:
    from ..service import StitchService

DocumentT = TypeVar("DocumentT")


class RemoteMongoDatabase:
    """A database reached through a MongoDB service."""

    def __init__(self, name: str, service: StitchService) -> None:
        self._name = name
        self._service = service

    @property
    def name(self) -> str:
        return self._name

    @overload
    def collection(self, name: str) -> RemoteMongoCollection[dict[str, Any]]: ...

    @overload
    def collection(
        self, name: str, document_type: type[DocumentT]
    ) -> RemoteMongoCollection[DocumentT]: ...

    def collection(self, name: str, document_type: Any = dict) -> RemoteMongoCollection[Any]:
        """Get a collection whose documents decode as ``document_type``."""
        return RemoteMongoCollection(
            MongoNamespace(database=self._name, collection=name),
            document_type,
            self._service,
        )


class RemoteMongoClient:
    """Client for a linked MongoDB service.

    Pass the class itself to ``StitchAppClient.get_service_client``.
    """

    def __init__(self, service: StitchService) -> None:
        self._service = service

    def db(self, name: str) -> RemoteMongoDatabase:
        return RemoteMongoDatabase(name, self._service)
