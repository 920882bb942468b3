"""Descriptors consumed by the binding engine.

These are pure, immutable data structures produced by a metadata provider
(see `argbind._metadata`) and read by the binder and the hydrator.
The engine itself never introspects callables or classes directly.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class TypeKind(StrEnum):
    """The shape a parameter or field requires."""

    BOOL = auto()
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    ARRAY = auto()  # container of unknown items; `target` is the container class
    NULL = auto()
    ENTITY = auto()  # class-shaped target, constructed or resolved
    ENUM = auto()
    UNRESOLVED = auto()  # no usable type information


SCALAR_KINDS = frozenset({TypeKind.BOOL, TypeKind.INT, TypeKind.FLOAT, TypeKind.STRING})

_TEMPORAL_TYPES = (datetime.date, datetime.time)


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Required shape of one parameter or field.

    Attributes:
        kind: The kind of value required.
        nullable: Whether `None` is an acceptable value.
        target: The class for ENTITY and ENUM kinds, the container class for ARRAY.
        name: Written name of an UNRESOLVED type. `None` when nothing was declared.

    """

    kind: TypeKind
    nullable: bool = False
    target: type | None = None
    name: str | None = None

    @property
    def type_name(self) -> str:
        """Human-readable name of the required type."""
        if self.target is not None and self.target.__module__ == "builtins":
            return self.target.__qualname__
        if self.target is not None:
            return f"{self.target.__module__}.{self.target.__qualname__}"
        if self.name is not None:
            return self.name
        if self.kind is TypeKind.UNRESOLVED:
            return "mixed"
        return str(self.kind)

    @property
    def is_scalar(self) -> bool:
        return self.kind in SCALAR_KINDS

    @property
    def is_temporal(self) -> bool:
        """Check if the target is a moment-in-time value type (date, datetime, time)."""
        return (
            self.kind is TypeKind.ENTITY
            and self.target is not None
            and issubclass(self.target, _TEMPORAL_TYPES)
        )

    def __str__(self) -> str:
        suffix = " | None" if self.nullable and self.kind is not TypeKind.NULL else ""
        return f"{self.type_name}{suffix}"


@dataclass(frozen=True, slots=True)
class HasDefault:
    """The parameter declares a default value."""

    value: Any


@dataclass(frozen=True, slots=True)
class NoDefault:
    """The parameter declares no default value."""


@dataclass(frozen=True, slots=True)
class DefaultRetrievalFailed:
    """The parameter declares a default, but computing it failed."""

    reason: str


DefaultOutcome = HasDefault | NoDefault | DefaultRetrievalFailed


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """One formal parameter of a callable or constructor.

    Attributes:
        name: Parameter name, also the key looked up in the raw input.
        position: Zero-based position in the declaring signature.
        type: The required shape.
        default: Outcome of looking up the declared default.
        allows_null: Whether `None` may be bound.
        declaring_context: Qualified name of the declaring callable, for diagnostics.
        keyword_only: Pass the value by keyword when invoking.
        variadic: The parameter collects extra positional arguments (`*args`).

    """

    name: str
    position: int
    type: TypeDescriptor
    default: DefaultOutcome = field(default_factory=NoDefault)
    allows_null: bool = False
    declaring_context: str | None = None
    keyword_only: bool = False
    variadic: bool = False

    @property
    def is_optional(self) -> bool:
        return isinstance(self.default, HasDefault)

    def __str__(self) -> str:
        prefix = "*" if self.variadic else ""
        return f"{prefix}{self.name}: {self.type}"


@dataclass(frozen=True, slots=True)
class SetterSpec:
    """A dedicated assignment routine for a field (e.g. `set_name(value)`).

    The parameter's own type governs coercion of the assigned value.
    """

    method_name: str
    parameter: ParameterSpec


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """A settable field of an entity that is not supplied through its constructor."""

    name: str
    type: TypeDescriptor
    allows_null: bool = False
    setter: SetterSpec | None = None

    def as_parameter(self, position: int = 0, declaring_context: str | None = None) -> ParameterSpec:
        """View this field as a parameter, so it can go through parameter resolution."""
        return ParameterSpec(
            name=self.name,
            position=position,
            type=self.type,
            allows_null=self.allows_null,
            declaring_context=declaring_context,
        )


@dataclass(frozen=True, slots=True)
class EntityShape:
    """How to construct and populate an entity class.

    Attributes:
        target: The entity class.
        parameters: Constructor parameters, in declaration order.
        fields: Settable fields not covered by the constructor.

    """

    target: type
    parameters: tuple[ParameterSpec, ...] = ()
    fields: tuple[FieldSpec, ...] = ()

    @property
    def name(self) -> str:
        return f"{self.target.__module__}.{self.target.__qualname__}"


@dataclass(frozen=True, slots=True)
class RecursionGuard:
    """Entity type names currently under construction, outermost first.

    The guard is threaded through recursive hydration calls. `enter` returns a
    new guard instead of mutating this one, so a frame's entry is dropped as
    soon as the frame returns, whichever way it returns.
    """

    stack: tuple[str, ...] = ()

    def __contains__(self, name: object) -> bool:
        return name in self.stack

    def __len__(self) -> int:
        return len(self.stack)

    def enter(self, name: str) -> RecursionGuard:
        """Return a guard with `name` pushed on top."""
        return RecursionGuard((*self.stack, name))

    @property
    def trace(self) -> list[str]:
        return list(self.stack)


@dataclass(frozen=True, slots=True)
class BoundArguments:
    """Fully-typed arguments, ready to invoke the target callable.

    Attributes:
        arguments: Parameter name to bound value, in declaration order.
        parameters: The specs the arguments were bound against.

    """

    arguments: dict[str, Any] = field(default_factory=dict)
    parameters: tuple[ParameterSpec, ...] = ()

    def __getitem__(self, name: str) -> Any:
        return self.arguments[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.arguments)

    def __len__(self) -> int:
        return len(self.arguments)

    @property
    def args(self) -> tuple[Any, ...]:
        """Values passed positionally, variadic values spread."""
        values: list[Any] = []
        for spec in self.parameters:
            if spec.keyword_only or spec.name not in self.arguments:
                continue
            if spec.variadic:
                values.extend(self.arguments[spec.name])
            else:
                values.append(self.arguments[spec.name])
        return tuple(values)

    @property
    def kwargs(self) -> dict[str, Any]:
        """Values passed by keyword."""
        return {
            spec.name: self.arguments[spec.name]
            for spec in self.parameters
            if spec.keyword_only and spec.name in self.arguments
        }

    def call(self, fn: Callable[..., Any]) -> Any:
        """Invoke `fn` with these arguments."""
        return fn(*self.args, **self.kwargs)
