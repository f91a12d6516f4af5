"""Lazily executed find and aggregate queries."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

if TYPE_CHECKING:
    from ...core.handle import ResultHandle
    from .collection import RemoteMongoCollection

ResultT = TypeVar("ResultT")


class RemoteMongoCursor(Generic[ResultT]):
    """Iterator over documents already fetched from the server."""

    def __init__(self, documents: list[ResultT]) -> None:
        self._documents = iter(documents)

    def try_next(self) -> ResultT | None:
        return next(self._documents, None)

    def __iter__(self) -> Iterator[ResultT]:
        return self._documents

    def __next__(self) -> ResultT:
        return next(self._documents)


class _RemoteIterable(Generic[ResultT]):
    """Query that runs when one of its results is requested."""

    def __init__(
        self,
        collection: RemoteMongoCollection[Any],
        result_type: Any,
    ) -> None:
        self._collection = collection
        self._result_type = result_type

    def _fetch(self, limit: int | None = None) -> ResultHandle[list[ResultT]]:
        raise NotImplementedError

    def to_list(self) -> ResultHandle[list[ResultT]]:
        """Fetch every result."""
        return self._fetch()

    def first(self) -> ResultHandle[ResultT | None]:
        """Fetch the first result, or ``None`` when there is none."""
        return self._fetch(limit=1).then(lambda docs: docs[0] if docs else None)

    def iterator(self) -> ResultHandle[RemoteMongoCursor[ResultT]]:
        """Fetch every result, wrapped in a cursor."""
        return self._fetch().then(RemoteMongoCursor)


class RemoteFindIterable(_RemoteIterable[ResultT]):
    """Find query with builder-style modifiers."""

    def __init__(
        self,
        collection: RemoteMongoCollection[Any],
        result_type: Any,
        filter: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(collection, result_type)
        self._filter = filter or {}
        self._limit: int | None = None
        self._projection: dict[str, Any] | None = None
        self._sort: dict[str, Any] | None = None

    def limit(self, limit: int) -> Self:
        self._limit = limit
        return self

    def projection(self, projection: dict[str, Any]) -> Self:
        self._projection = projection
        return self

    def sort(self, sort: dict[str, Any]) -> Self:
        self._sort = sort
        return self

    def _fetch(self, limit: int | None = None) -> ResultHandle[list[ResultT]]:
        if self._limit is not None and limit is not None:
            limit = min(limit, self._limit)
        return self._collection._find(
            self._filter,
            limit=limit if limit is not None else self._limit,
            projection=self._projection,
            sort=self._sort,
            result_type=self._result_type,
        )


class RemoteAggregateIterable(_RemoteIterable[ResultT]):
    """Aggregation pipeline query."""

    def __init__(
        self,
        collection: RemoteMongoCollection[Any],
        result_type: Any,
        pipeline: list[dict[str, Any]],
    ) -> None:
        super().__init__(collection, result_type)
        self._pipeline = list(pipeline)

    def _fetch(self, limit: int | None = None) -> ResultHandle[list[ResultT]]:
        stages = self._pipeline
        if limit is not None:
            stages = [*stages, {"$limit": limit}]
        return self._collection._aggregate(stages, result_type=self._result_type)
