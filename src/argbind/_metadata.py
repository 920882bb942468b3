"""Metadata provider: describe callables and entity classes as plain data.

The binding engine consumes `ParameterSpec`, `FieldSpec` and `EntityShape`
values only. `SignatureMetadataProvider` computes them from Python signatures
and type hints; any other provider (a schema registry, generated code) can
be plugged in through the `MetadataProvider` protocol.
"""

from __future__ import annotations

import dataclasses
import datetime
import inspect
import logging
import types
import typing
from collections.abc import Mapping, Sequence, Set
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, Union, get_args, get_origin

from pydantic import BaseModel

from ._types import (
    DefaultRetrievalFailed,
    EntityShape,
    FieldSpec,
    HasDefault,
    NoDefault,
    ParameterSpec,
    SetterSpec,
    TypeDescriptor,
    TypeKind,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic.fields import FieldInfo

    from ._types import DefaultOutcome

logger = logging.getLogger(__name__)

SETTER_PREFIX = "set_"

# `bool` must come before `int` because `bool` is a subclass of `int`.
_SCALAR_TYPES: tuple[tuple[type, TypeKind], ...] = (
    (bool, TypeKind.BOOL),
    (int, TypeKind.INT),
    (float, TypeKind.FLOAT),
    (str, TypeKind.STRING),
)

_ARRAY_ORIGINS: tuple[type, ...] = (list, tuple, set, frozenset, dict, Sequence, Mapping, Set)


class MetadataProvider(Protocol):
    """Source of parameter and entity descriptions.

    Implementations must be deterministic per callable/type identity and safe
    to call re-entrantly while a binding is in progress.
    """

    def describe_parameters(self, fn: Callable[..., Any]) -> tuple[ParameterSpec, ...]: ...

    def describe_entity(self, target: type) -> EntityShape | None: ...


def _qualname(obj: object) -> str:
    return getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or repr(obj)


def _is_union(annotation: Any) -> bool:
    return get_origin(annotation) in (Union, types.UnionType)


def _container(cls: type) -> type:
    """Concrete class an ARRAY value is built as. Abstract collections map to `dict`, `set` or `list`."""
    if not inspect.isabstract(cls):
        return cls
    if issubclass(cls, Mapping):
        return dict
    if issubclass(cls, Set):
        return set
    return list


def describe_type(annotation: Any) -> TypeDescriptor:  # noqa: C901, PLR0911
    """Map a type annotation onto a `TypeDescriptor`.

    Args:
        annotation: An evaluated annotation, a string forward reference, or
            `inspect.Parameter.empty` for an undeclared type.

    Returns:
        The descriptor. Unsupported annotations become UNRESOLVED carrying their written name.

    Examples:
        >>> describe_type(int)
        TypeDescriptor(kind=<TypeKind.INT: 'int'>, nullable=False, target=None, name=None)
        >>> describe_type(int | None).nullable
        True

    """
    if annotation is inspect.Parameter.empty or annotation is Any:
        return TypeDescriptor(TypeKind.UNRESOLVED, nullable=True)
    if annotation is None or annotation is types.NoneType:
        return TypeDescriptor(TypeKind.NULL, nullable=True)
    if isinstance(annotation, str):
        return TypeDescriptor(TypeKind.UNRESOLVED, name=annotation)
    if isinstance(annotation, typing.ForwardRef):
        return TypeDescriptor(TypeKind.UNRESOLVED, name=annotation.__forward_arg__)

    if _is_union(annotation):
        members = [arg for arg in get_args(annotation) if arg is not types.NoneType]
        nullable = len(members) < len(get_args(annotation))
        if len(members) == 1:
            return dataclasses.replace(describe_type(members[0]), nullable=nullable)
        name = " | ".join(describe_type(member).type_name for member in members)
        return TypeDescriptor(TypeKind.UNRESOLVED, nullable=nullable, name=name)

    origin = get_origin(annotation)
    if origin is typing.Annotated:
        return describe_type(get_args(annotation)[0])
    if origin is typing.Literal:
        return TypeDescriptor(TypeKind.UNRESOLVED, name=repr(annotation))
    if origin is not None:
        if isinstance(origin, type) and issubclass(origin, _ARRAY_ORIGINS):
            return TypeDescriptor(TypeKind.ARRAY, target=_container(origin))
        return TypeDescriptor(TypeKind.UNRESOLVED, name=repr(annotation))

    if not isinstance(annotation, type):
        return TypeDescriptor(TypeKind.UNRESOLVED, name=repr(annotation))

    # `Enum` should come before `str` because `StrEnum` is a subclass of `str`, but should be treated as `Enum`.
    if issubclass(annotation, Enum):
        return TypeDescriptor(TypeKind.ENUM, target=annotation)
    for scalar_type, kind in _SCALAR_TYPES:
        if issubclass(annotation, scalar_type):
            return TypeDescriptor(kind)
    if issubclass(annotation, _ARRAY_ORIGINS):
        return TypeDescriptor(TypeKind.ARRAY, target=_container(annotation))
    return TypeDescriptor(TypeKind.ENTITY, target=annotation)


def _resolve_hints(obj: Any) -> dict[str, Any]:
    """Evaluate type hints, falling back to the raw annotations on unresolvable forward references."""
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError, AttributeError) as e:
        logger.debug(f"Could not evaluate type hints of {_qualname(obj)}: {e}")
        return dict(getattr(obj, "__annotations__", {}))


def _parameter_default(param: inspect.Parameter) -> DefaultOutcome:
    if param.default is inspect.Parameter.empty:
        return NoDefault()
    return HasDefault(param.default)


def _factory_default(factory: Callable[[], Any]) -> DefaultOutcome:
    try:
        return HasDefault(factory())
    except Exception as e:  # noqa: BLE001
        return DefaultRetrievalFailed(f"{type(e).__name__}: {e}")


def _spec_from_type(
    name: str,
    position: int,
    type_: TypeDescriptor,
    default: DefaultOutcome,
    context: str | None,
    *,
    keyword_only: bool = False,
    variadic: bool = False,
) -> ParameterSpec:
    allows_null = type_.nullable or (isinstance(default, HasDefault) and default.value is None)
    return ParameterSpec(
        name=name,
        position=position,
        type=type_,
        default=default,
        allows_null=allows_null,
        declaring_context=context,
        keyword_only=keyword_only,
        variadic=variadic,
    )


class SignatureMetadataProvider:
    """Describe callables and classes through `inspect` and type hints."""

    def describe_parameters(self, fn: Callable[..., Any]) -> tuple[ParameterSpec, ...]:
        """Describe the formal parameters of a callable, in declaration order.

        `**kwargs` is skipped. `*args` becomes a variadic array parameter defaulting to `()`.
        """
        sig = inspect.signature(fn)
        hints = _resolve_hints(inspect.unwrap(fn))
        context = _qualname(fn)

        specs: list[ParameterSpec] = []
        for position, param in enumerate(sig.parameters.values()):
            if param.kind is inspect.Parameter.VAR_KEYWORD:
                continue
            annotation = hints.get(param.name, param.annotation)
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                specs.append(
                    _spec_from_type(
                        param.name,
                        position,
                        TypeDescriptor(TypeKind.ARRAY, target=tuple),
                        HasDefault(()),
                        context,
                        variadic=True,
                    ),
                )
                continue
            specs.append(
                _spec_from_type(
                    param.name,
                    position,
                    describe_type(annotation),
                    _parameter_default(param),
                    context,
                    keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
                ),
            )
        return tuple(specs)

    def describe_entity(self, target: type) -> EntityShape | None:
        """Describe how to construct and populate `target`.

        Returns:
            The shape, or None when `target` is not a describable class.

        """
        if not isinstance(target, type) or target.__module__ == "builtins":
            return None
        if issubclass(target, datetime.date | datetime.time):
            # Moment-in-time values are built by a resolver, never field by field
            return None
        if issubclass(target, BaseModel):
            shape = self._describe_pydantic(target)
        elif dataclasses.is_dataclass(target):
            shape = self._describe_dataclass(target)
        else:
            shape = self._describe_plain_class(target)
        if shape is not None:
            logger.debug(
                f"Described entity {shape.name}: "
                f"{len(shape.parameters)} constructor parameter(s), {len(shape.fields)} field(s)",
            )
        return shape

    def _describe_pydantic(self, target: type[BaseModel]) -> EntityShape:
        context = _qualname(target)
        hints = _resolve_hints(target)
        parameters = []
        for position, (name, field_info) in enumerate(target.model_fields.items()):
            annotation = hints.get(name, field_info.annotation)
            parameters.append(
                _spec_from_type(
                    name,
                    position,
                    describe_type(annotation),
                    self._pydantic_default(field_info),
                    context,
                    keyword_only=True,
                ),
            )
        return EntityShape(target=target, parameters=tuple(parameters))

    @staticmethod
    def _pydantic_default(field_info: FieldInfo) -> DefaultOutcome:
        if field_info.is_required():
            return NoDefault()
        return _factory_default(lambda: field_info.get_default(call_default_factory=True))

    def _describe_dataclass(self, target: type) -> EntityShape:
        context = _qualname(target)
        hints = _resolve_hints(target)
        parameters: list[ParameterSpec] = []
        init_names: set[str] = set()
        position = 0
        for f in dataclasses.fields(target):
            if not f.init:
                continue
            if f.default is not dataclasses.MISSING:
                default: DefaultOutcome = HasDefault(f.default)
            elif f.default_factory is not dataclasses.MISSING:
                default = _factory_default(f.default_factory)
            else:
                default = NoDefault()
            parameters.append(
                _spec_from_type(
                    f.name,
                    position,
                    describe_type(hints.get(f.name, f.type)),
                    default,
                    context,
                    keyword_only=f.kw_only is True,
                ),
            )
            init_names.add(f.name)
            position += 1

        field_hints = {f.name: hints.get(f.name, f.type) for f in dataclasses.fields(target)}
        return EntityShape(
            target=target,
            parameters=tuple(parameters),
            fields=self._settable_fields(target, field_hints, init_names),
        )

    def _describe_plain_class(self, target: type) -> EntityShape | None:
        context = _qualname(target)
        parameters: tuple[ParameterSpec, ...] = ()
        if target.__init__ is not object.__init__:
            try:
                init = inspect.signature(target)
            except (TypeError, ValueError):
                # Builtins and C extension types without introspectable signatures
                return None
            hints = _resolve_hints(target.__init__)
            parameters = tuple(
                _spec_from_type(
                    param.name,
                    position,
                    describe_type(hints.get(param.name, param.annotation)),
                    _parameter_default(param),
                    context,
                    keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
                )
                for position, param in enumerate(init.parameters.values())
                if param.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
            )

        return EntityShape(
            target=target,
            parameters=parameters,
            fields=self._settable_fields(target, _resolve_hints(target), {p.name for p in parameters}),
        )

    def _settable_fields(
        self,
        target: type,
        hints: dict[str, Any],
        skip: set[str],
    ) -> tuple[FieldSpec, ...]:
        fields = []
        for name, annotation in hints.items():
            if name in skip or name.startswith("_") or get_origin(annotation) is ClassVar or annotation is ClassVar:
                continue
            type_ = describe_type(annotation)
            fields.append(
                FieldSpec(
                    name=name,
                    type=type_,
                    allows_null=type_.nullable,
                    setter=self._describe_setter(target, name),
                ),
            )
        return tuple(fields)

    def _describe_setter(self, target: type, field_name: str) -> SetterSpec | None:
        """Find a dedicated `set_<field>(value)` method on the class."""
        method_name = f"{SETTER_PREFIX}{field_name}"
        method = getattr(target, method_name, None)
        if method is None or not callable(method):
            return None
        specs = [
            spec
            for spec in self.describe_parameters(method)
            if spec.name not in ("self", "cls") and not spec.variadic
        ]
        if len(specs) != 1:
            logger.debug(f"Ignoring {method_name}: expected exactly one value parameter, got {len(specs)}")
            return None
        return SetterSpec(method_name=method_name, parameter=dataclasses.replace(specs[0], name=field_name))
