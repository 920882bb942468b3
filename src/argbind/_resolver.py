"""Entity resolvers: turn a scalar (an id, an ISO date string) into an instance.

A resolver returns None when it has no opinion about the target type or the
value, so the binder can fall back to structural hydration or fail cleanly.
"""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


@runtime_checkable
class EntityResolver(Protocol):
    """Resolve a scalar value to an instance of `target`, or return None."""

    def resolve(self, target: type, value: Any) -> object | None: ...


@runtime_checkable
class EntityRepository(Protocol):
    """Project-specific lookup of persisted entities by id."""

    def find(self, target: type, id: int | str) -> object | None: ...  # noqa: A002


class TemporalResolver:
    """Build `date`, `datetime` and `time` values (and subclasses).

    Strings are parsed as ISO 8601. Numbers are Unix timestamps (UTC) for
    `datetime` and `date` targets.
    """

    def resolve(self, target: type, value: Any) -> object | None:
        if not isinstance(target, type) or not issubclass(target, datetime.date | datetime.time):
            return None
        if isinstance(value, target):
            return value
        try:
            if isinstance(value, str):
                return target.fromisoformat(value.strip())
            if isinstance(value, int | float) and not isinstance(value, bool):
                if issubclass(target, datetime.datetime):
                    return target.fromtimestamp(value, tz=datetime.UTC)
                if issubclass(target, datetime.date):
                    return datetime.datetime.fromtimestamp(value, tz=datetime.UTC).date()
        except (ValueError, OverflowError, OSError) as e:
            logger.debug(f"Can not build {target.__name__} from {value!r}: {e}")
        return None


class RepositoryResolver:
    """Adapt an `EntityRepository` to the resolver protocol."""

    def __init__(self, repository: EntityRepository) -> None:
        self.repository = repository

    def resolve(self, target: type, value: Any) -> object | None:
        if isinstance(value, bool) or not isinstance(value, int | str):
            return None
        return self.repository.find(target, value)


class ChainResolver:
    """Ask several resolvers in order; the first non-None answer wins."""

    def __init__(self, resolvers: Iterable[EntityResolver]) -> None:
        self.resolvers = tuple(resolvers)

    def resolve(self, target: type, value: Any) -> object | None:
        for resolver in self.resolvers:
            instance = resolver.resolve(target, value)
            if instance is not None:
                logger.debug(f"{type(resolver).__name__} resolved {value!r} to {target.__name__}")
                return instance
        return None


def default_resolver(repository: EntityRepository | None = None) -> ChainResolver:
    """Create the standard resolver chain: temporal values first, then the repository."""
    resolvers: list[EntityResolver] = [TemporalResolver()]
    if repository is not None:
        resolvers.append(RepositoryResolver(repository))
    return ChainResolver(resolvers)
