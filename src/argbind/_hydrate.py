"""Recursive object hydration and per-parameter resolution.

`ObjectHydrator.hydrate` builds an entity from a nested mapping: it resolves
the constructor parameters, constructs the instance, then fills the remaining
settable fields. `ObjectHydrator.resolve_parameter` binds a single parameter
from the enclosing raw mapping and is shared by the top-level binder and the
constructor path, so both follow the same precedence rules.

A `RecursionGuard` is threaded through every recursive call. Entering an
entity type that is already on the guard fails with a circular reference
instead of recursing without bound.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from ._coerce import NULL_LITERAL, coerce_scalar, empty_value, is_null_literal, is_truthy
from ._errors import BindingError
from ._types import HasDefault, RecursionGuard, TypeKind

if TYPE_CHECKING:
    from ._metadata import MetadataProvider
    from ._resolver import EntityResolver
    from ._types import FieldSpec, ParameterSpec, TypeDescriptor

logger = logging.getLogger(__name__)


def is_present(params: Mapping[str, Any], name: str) -> bool:
    """Check if `name` holds a non-None value."""
    return params.get(name) is not None


def is_scalar_value(value: object) -> bool:
    return isinstance(value, str | int | float | bool)


class ObjectHydrator:
    """Build typed values from raw input for one service.

    Args:
        service: Service identity, used in error messages.
        metadata: Describes entity classes.
        resolver: Resolves scalars (ids, ISO dates) to instances. Optional.

    """

    def __init__(
        self,
        service: object,
        metadata: MetadataProvider,
        resolver: EntityResolver | None = None,
    ) -> None:
        self.service = service
        self.metadata = metadata
        self.resolver = resolver

    # -----------------------------------------------------------------------
    # Entities
    # -----------------------------------------------------------------------

    def try_resolve(self, target: type, value: Any) -> object | None:
        """Ask the entity resolver, if any, to turn `value` into a `target` instance."""
        if self.resolver is None:
            return None
        return self.resolver.resolve(target, value)

    def hydrate(self, type_: TypeDescriptor, source: Any, guard: RecursionGuard) -> object:
        """Construct an instance of an entity type from a mapping or a scalar.

        Args:
            type_: The ENTITY descriptor of the target.
            source: A mapping of field values, or a scalar for the resolver.
            guard: Entity types currently under construction.

        Returns:
            The hydrated instance.

        Raises:
            BindingError: If the entity is unknown, the scalar can not be
                resolved, a cycle is detected, or a field can not be bound.

        """
        target = type_.target
        if target is None:
            raise BindingError.unknown_entity(self.service, type_.type_name)

        if not isinstance(source, Mapping):
            instance = self.try_resolve(target, source)
            if instance is not None:
                return instance
            raise BindingError.cannot_convert_scalar_to_entity(self.service, type_.type_name, source)

        shape = self.metadata.describe_entity(target)
        if shape is None:
            raise BindingError.unknown_entity(self.service, type_.type_name)

        if shape.name in guard:
            raise BindingError.circular_reference(self.service, shape.name, guard.trace)
        guard = guard.enter(shape.name)
        logger.debug(f"Hydrating {shape.name} (depth {len(guard)})")

        positional: list[Any] = []
        keywords: dict[str, Any] = {}
        for spec in shape.parameters:
            value = self.resolve_parameter(spec, source, guard)
            if spec.keyword_only:
                keywords[spec.name] = value
            else:
                positional.append(value)
        instance = shape.target(*positional, **keywords)

        for field in shape.fields:
            self._hydrate_field(instance, shape.name, field, source, guard)

        return instance

    def _hydrate_field(
        self,
        instance: object,
        entity_name: str,
        field: FieldSpec,
        source: Mapping[str, Any],
        guard: RecursionGuard,
    ) -> None:
        raw = source.get(field.name)
        if raw is not None and not isinstance(raw, Mapping):
            self._assign(instance, entity_name, field, source, guard)
            return

        if getattr(instance, field.name, None) is not None:
            return

        # A nested mapping is given, or the entity's fields are flattened into this one
        if isinstance(raw, Mapping) or (
            field.type.kind is TypeKind.ENTITY and not (field.allows_null or field.type.nullable)
        ):
            self._assign(instance, entity_name, field, source, guard)
            return

        if field.allows_null or field.type.nullable:
            return

        raise BindingError.required_property_missing(
            self.service,
            entity_name,
            field.name,
            allows_scalar=field.type.is_scalar or field.type.kind is TypeKind.ENUM,
            type_name=field.type.type_name,
        )

    def _assign(
        self,
        instance: object,
        entity_name: str,
        field: FieldSpec,
        source: Mapping[str, Any],
        guard: RecursionGuard,
    ) -> None:
        """Resolve a field value and store it, through the field's setter when it has one."""
        if field.setter is not None:
            value = self.resolve_parameter(field.setter.parameter, source, guard)
            getattr(instance, field.setter.method_name)(value)
            return
        value = self.resolve_parameter(field.as_parameter(declaring_context=entity_name), source, guard)
        setattr(instance, field.name, value)

    # -----------------------------------------------------------------------
    # Parameters
    # -----------------------------------------------------------------------

    def resolve_parameter(
        self,
        spec: ParameterSpec,
        params: Mapping[str, Any],
        guard: RecursionGuard | None = None,
    ) -> Any:
        """Bind one parameter from the enclosing raw mapping.

        Args:
            spec: The parameter to bind.
            params: The enclosing raw input.
            guard: Entity types currently under construction.

        Returns:
            A value satisfying the parameter's type and nullability.

        Raises:
            BindingError: If no such value can be produced from the input.

        """
        guard = guard if guard is not None else RecursionGuard()
        kind = spec.type.kind

        if kind is TypeKind.ENTITY:
            return self._resolve_entity(spec, params, guard)
        if kind is TypeKind.ENUM:
            return self._resolve_enum(spec, params)

        if is_present(params, spec.name):
            value = params[spec.name]
            if is_truthy(value) or kind is TypeKind.STRING:
                return coerce_scalar(self.service, spec, value)
            return empty_value(self.service, spec, value)

        return self._resolve_absent(spec, params)

    def _resolve_absent(self, spec: ParameterSpec, params: Mapping[str, Any]) -> Any:
        if isinstance(spec.default, HasDefault):
            return spec.default.value
        if spec.allows_null and spec.name in params and params[spec.name] is None:
            return None
        raise BindingError.parameter_missing(self.service, spec.name, spec.position, spec.declaring_context)

    def _resolve_entity(self, spec: ParameterSpec, params: Mapping[str, Any], guard: RecursionGuard) -> Any:
        target = spec.type.target
        nullable = spec.allows_null or spec.type.nullable
        if spec.name in params:
            value = params[spec.name]
            if is_null_literal(value) and nullable:
                return None
            if target is not None and isinstance(value, target):
                return value
            if value is not None and not isinstance(value, Mapping):
                if target is not None:
                    instance = self.try_resolve(target, value)
                    if instance is not None:
                        return instance
                raise BindingError.cannot_convert_scalar_to_entity(self.service, spec.type.type_name, value)
            if isinstance(value, Mapping):
                return self.hydrate(spec.type, value, guard)

        if isinstance(spec.default, HasDefault):
            return spec.default.value
        # Flattened payload: the entity's fields sit directly in the enclosing mapping
        return self.hydrate(spec.type, params, guard)

    def _resolve_enum(self, spec: ParameterSpec, params: Mapping[str, Any]) -> Any:
        enum_type: type[Enum] = spec.type.target  # ty: ignore[invalid-assignment]
        nullable = spec.allows_null or spec.type.nullable
        if not is_present(params, spec.name):
            if nullable and not isinstance(spec.default, HasDefault):
                return None
            return self._resolve_absent(spec, params)

        value = params[spec.name]
        if nullable and value in (NULL_LITERAL, ""):
            return None
        if isinstance(value, enum_type):
            return value
        if is_scalar_value(value) and not isinstance(value, bool):
            needle = str(value).casefold()
            for member in enum_type:
                if member.value == value or needle in (str(member.value).casefold(), member.name.casefold()):
                    return member
        raise BindingError.invalid_enum_value(
            self.service,
            spec.name,
            value,
            [member.value for member in enum_type],
        )
