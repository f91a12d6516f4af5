"""Remote MongoDB collection.

Every method reshapes its arguments into one call of the service's
built-in functions and decodes the result; nothing runs on the calling
thread.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .change_stream import ChangeStream
from .iterables import RemoteAggregateIterable, RemoteFindIterable
from .models import (
    ChangeEvent,
    CompactChangeEvent,
    MongoNamespace,
    RemoteDeleteResult,
    RemoteInsertManyResult,
    RemoteInsertOneResult,
    RemoteUpdateResult,
)

if TYPE_CHECKING:
    from ...core.handle import ResultHandle
    from ..service import StitchService

DocumentT = TypeVar("DocumentT")
NewDocumentT = TypeVar("NewDocumentT")


class RemoteMongoCollection(Generic[DocumentT]):
    """A collection of documents decoded as ``document_type``."""

    def __init__(
        self,
        namespace: MongoNamespace,
        document_type: type[DocumentT],
        service: StitchService,
    ) -> None:
        self._namespace = namespace
        self._document_type = document_type
        self._service = service

    @property
    def namespace(self) -> MongoNamespace:
        return self._namespace

    @property
    def document_type(self) -> type[DocumentT]:
        return self._document_type

    def with_document_type(
        self, document_type: type[NewDocumentT]
    ) -> RemoteMongoCollection[NewDocumentT]:
        """Same collection, decoding documents as ``document_type``."""
        return RemoteMongoCollection(self._namespace, document_type, self._service)

    def _base_args(self) -> dict[str, Any]:
        return {
            "database": self._namespace.database,
            "collection": self._namespace.collection,
        }

    def _call(self, name: str, args: dict[str, Any], result_type: Any) -> ResultHandle[Any]:
        return self._service.call_function(name, [args], result_type)

    def _encode(self, value: Any) -> Any:
        return self._service.codec.encode(value)

    def count(
        self,
        filter: dict[str, Any] | None = None,
        *,
        limit: int | None = None,
    ) -> ResultHandle[int]:
        """Count documents matching ``filter``."""
        args = self._base_args()
        args["query"] = filter or {}
        if limit is not None:
            args["limit"] = limit
        return self._call("count", args, int)

    def find_one(
        self,
        filter: dict[str, Any] | None = None,
        *,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        result_type: Any = None,
    ) -> ResultHandle[Any]:
        """Find one document, resolving to ``None`` when nothing matches."""
        args = self._base_args()
        args["query"] = filter or {}
        if projection is not None:
            args["project"] = projection
        if sort is not None:
            args["sort"] = sort
        return self._call("findOne", args, (result_type or self._document_type) | None)

    def find(
        self,
        filter: dict[str, Any] | None = None,
        result_type: Any = None,
    ) -> RemoteFindIterable[Any]:
        """Build a find query; nothing is sent until a result is requested."""
        return RemoteFindIterable(self, result_type or self._document_type, filter)

    def aggregate(
        self,
        pipeline: list[dict[str, Any]],
        result_type: Any = None,
    ) -> RemoteAggregateIterable[Any]:
        """Build an aggregation; nothing is sent until a result is requested."""
        return RemoteAggregateIterable(self, result_type or self._document_type, pipeline)

    def _find(
        self,
        filter: dict[str, Any],
        *,
        limit: int | None,
        projection: dict[str, Any] | None,
        sort: dict[str, Any] | None,
        result_type: Any,
    ) -> ResultHandle[list[Any]]:
        args = self._base_args()
        args["query"] = filter
        if limit is not None:
            args["limit"] = limit
        if projection is not None:
            args["project"] = projection
        if sort is not None:
            args["sort"] = sort
        return self._call("find", args, list[result_type])

    def _aggregate(
        self,
        pipeline: list[dict[str, Any]],
        *,
        result_type: Any,
    ) -> ResultHandle[list[Any]]:
        args = self._base_args()
        args["pipeline"] = pipeline
        return self._call("aggregate", args, list[result_type])

    def _with_id(self, document: DocumentT) -> dict[str, Any]:
        encoded = self._encode(document)
        if not isinstance(encoded, dict):
            msg = "Documents must encode to a JSON object"
            raise TypeError(msg)
        if "_id" not in encoded:
            encoded = {"_id": uuid.uuid4().hex, **encoded}
        return encoded

    def insert_one(self, document: DocumentT) -> ResultHandle[RemoteInsertOneResult]:
        """Insert a document, generating an ``_id`` if it has none."""
        encoded = self._with_id(document)
        args = self._base_args()
        args["document"] = encoded
        return self._call("insertOne", args, None).then(
            lambda _: RemoteInsertOneResult(inserted_id=encoded["_id"])
        )

    def insert_many(self, documents: list[DocumentT]) -> ResultHandle[RemoteInsertManyResult]:
        """Insert documents, generating ``_id`` values where missing."""
        encoded = [self._with_id(document) for document in documents]
        args = self._base_args()
        args["documents"] = encoded
        inserted_ids = {index: document["_id"] for index, document in enumerate(encoded)}
        return self._call("insertMany", args, None).then(
            lambda _: RemoteInsertManyResult(inserted_ids=inserted_ids)
        )

    def delete_one(self, filter: dict[str, Any]) -> ResultHandle[RemoteDeleteResult]:
        args = self._base_args()
        args["query"] = filter
        return self._call("deleteOne", args, RemoteDeleteResult)

    def delete_many(self, filter: dict[str, Any]) -> ResultHandle[RemoteDeleteResult]:
        args = self._base_args()
        args["query"] = filter
        return self._call("deleteMany", args, RemoteDeleteResult)

    def _update_args(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        upsert: bool,
    ) -> dict[str, Any]:
        args = self._base_args()
        args["query"] = filter
        args["update"] = update
        if upsert:
            args["upsert"] = True
        return args

    def update_one(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        upsert: bool = False,
    ) -> ResultHandle[RemoteUpdateResult]:
        return self._call(
            "updateOne", self._update_args(filter, update, upsert), RemoteUpdateResult
        )

    def update_many(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        upsert: bool = False,
    ) -> ResultHandle[RemoteUpdateResult]:
        return self._call(
            "updateMany", self._update_args(filter, update, upsert), RemoteUpdateResult
        )

    def _find_one_and_modify(
        self,
        name: str,
        args: dict[str, Any],
        *,
        projection: dict[str, Any] | None,
        sort: dict[str, Any] | None,
        upsert: bool,
        return_new_document: bool,
        result_type: Any,
    ) -> ResultHandle[Any]:
        if projection is not None:
            args["projection"] = projection
        if sort is not None:
            args["sort"] = sort
        if upsert:
            args["upsert"] = True
        if return_new_document:
            args["returnNewDocument"] = True
        return self._call(name, args, (result_type or self._document_type) | None)

    def find_one_and_update(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        upsert: bool = False,
        return_new_document: bool = False,
        result_type: Any = None,
    ) -> ResultHandle[Any]:
        """Update one document and resolve to it, before or after the update."""
        args = self._base_args()
        args["filter"] = filter
        args["update"] = update
        return self._find_one_and_modify(
            "findOneAndUpdate",
            args,
            projection=projection,
            sort=sort,
            upsert=upsert,
            return_new_document=return_new_document,
            result_type=result_type,
        )

    def find_one_and_replace(
        self,
        filter: dict[str, Any],
        replacement: DocumentT,
        *,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        upsert: bool = False,
        return_new_document: bool = False,
        result_type: Any = None,
    ) -> ResultHandle[Any]:
        """Replace one document and resolve to it, before or after the change."""
        args = self._base_args()
        args["filter"] = filter
        args["update"] = self._encode(replacement)
        return self._find_one_and_modify(
            "findOneAndReplace",
            args,
            projection=projection,
            sort=sort,
            upsert=upsert,
            return_new_document=return_new_document,
            result_type=result_type,
        )

    def find_one_and_delete(
        self,
        filter: dict[str, Any],
        *,
        projection: dict[str, Any] | None = None,
        sort: dict[str, Any] | None = None,
        result_type: Any = None,
    ) -> ResultHandle[Any]:
        """Delete one document and resolve to it."""
        args = self._base_args()
        args["filter"] = filter
        return self._find_one_and_modify(
            "findOneAndDelete",
            args,
            projection=projection,
            sort=sort,
            upsert=False,
            return_new_document=False,
            result_type=result_type,
        )

    def _watch(self, ids: tuple[Any, ...], *, compact: bool) -> ResultHandle[ChangeStream[Any]]:
        args = self._base_args()
        args["ids"] = self._encode(list(ids))
        if compact:
            args["useCompactEvents"] = True
        event_type = (CompactChangeEvent if compact else ChangeEvent)[self._document_type]
        service = self._service
        return service.stream_function("watch", [args]).then(
            lambda stream: ChangeStream(stream, event_type, service.codec, service.dispatcher)
        )

    def watch(self, *ids: Any) -> ResultHandle[ChangeStream[ChangeEvent[DocumentT]]]:
        """Open a change stream over the documents with the given ``_id`` values."""
        return self._watch(ids, compact=False)

    def watch_compact(
        self, *ids: Any
    ) -> ResultHandle[ChangeStream[CompactChangeEvent[DocumentT]]]:
        """Open a compact change stream over the given ``_id`` values."""
        return self._watch(ids, compact=True)
