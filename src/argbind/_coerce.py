"""Scalar coercion rules.

Raw input usually arrives as strings (form data, query strings) or loosely
typed JSON. These pure functions convert one raw value into the scalar type a
parameter declares, and pick the "empty value" substituted for present but
falsy input.

Rules:
1. bool: case-insensitive membership in {"1", "true", "yes"}.
2. int/float: numeric cast. The literal "null" becomes None only when nullable.
3. string: always coerced, since "" is a legitimate string.
4. array: the declared container; a mapping never binds to a sequence type, nor the reverse.
5. Values of an undeclared type pass through unchanged.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final

from ._errors import BindingError
from ._types import TypeKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._types import ParameterSpec

NULL_LITERAL: Final = "null"

TRUE_LITERALS: Final = frozenset({"1", "true", "yes"})

EMPTY_VALUES: Final[dict[TypeKind, Callable[[], Any]]] = {
    TypeKind.STRING: lambda: "",
    TypeKind.BOOL: lambda: False,
    TypeKind.INT: lambda: 0,
    TypeKind.FLOAT: lambda: 0.0,
    TypeKind.ARRAY: list,
    TypeKind.NULL: lambda: None,
}


def is_truthy(value: object) -> bool:
    """Check truthiness the way form input is judged: "0" is falsy, "0.0" is not."""
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def is_null_literal(value: object) -> bool:
    return value is None or value == NULL_LITERAL


def _to_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return int(float(text))
    msg = f"Can not cast {type(value).__name__} to int"
    raise TypeError(msg)


def _to_float(value: object) -> float:
    if isinstance(value, bool | int | float):
        result = float(value)
    elif isinstance(value, str):
        result = float(value.strip())
    else:
        msg = f"Can not cast {type(value).__name__} to float"
        raise TypeError(msg)
    if math.isnan(result):
        msg = "NaN is not a number"
        raise ValueError(msg)
    return result


def _to_string(value: object) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    msg = f"Can not cast {type(value).__name__} to str"
    raise TypeError(msg)


def _to_array(value: object, container: type | None) -> Any:
    """Build the declared container. Without one, sequences become lists and mappings dicts."""
    if isinstance(value, Mapping):
        if container is None:
            container = dict
        elif not issubclass(container, Mapping):
            msg = f"Can not cast a mapping to {container.__name__}"
            raise TypeError(msg)
    elif isinstance(value, list | tuple | set | frozenset):
        if container is None:
            container = list
        elif issubclass(container, Mapping):
            msg = f"Can not cast {type(value).__name__} to {container.__name__}"
            raise TypeError(msg)
    else:
        msg = f"Can not cast {type(value).__name__} to array"
        raise TypeError(msg)
    return value if type(value) is container else container(value)


def coerce_scalar(service: object, spec: ParameterSpec, value: Any) -> Any:  # noqa: C901, PLR0911
    """Convert a present raw value into the parameter's declared scalar type.

    Called for truthy values, and for every value of a string parameter.

    Args:
        service: Service identity, for error messages.
        spec: The parameter being bound.
        value: The raw value.

    Returns:
        The coerced value.

    Raises:
        BindingError: If the value can not be converted.

    """
    kind = spec.type.kind
    nullable = spec.allows_null or spec.type.nullable

    if kind is TypeKind.BOOL:
        if isinstance(value, bool):
            return value
        return str(value).lower() in TRUE_LITERALS

    if kind in (TypeKind.INT, TypeKind.FLOAT, TypeKind.STRING) and value == NULL_LITERAL:
        if nullable:
            return None
        if kind is not TypeKind.STRING:
            raise BindingError.null_not_allowed(service, spec.name, spec.type.type_name)

    if kind is TypeKind.UNRESOLVED:
        return None if nullable and value == NULL_LITERAL else value

    cast = {
        TypeKind.INT: _to_int,
        TypeKind.FLOAT: _to_float,
        TypeKind.STRING: _to_string,
        TypeKind.ARRAY: lambda raw: _to_array(raw, spec.type.target),
    }.get(kind)
    if cast is None:
        # NULL accepts nothing but an empty value
        raise BindingError.invalid_scalar_value(service, spec.name, value, spec.type.type_name)

    try:
        return cast(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise BindingError.invalid_scalar_value(service, spec.name, value, spec.type.type_name) from e


def empty_value(service: object, spec: ParameterSpec, value: Any) -> Any:
    """Pick the value substituted for a present but falsy input.

    Args:
        service: Service identity, for error messages.
        spec: The parameter being bound.
        value: The raw falsy value.

    Returns:
        The empty value of the declared type.

    Raises:
        BindingError: If the type is object-shaped or has no empty value.

    """
    type_ = spec.type
    if type_.kind is TypeKind.UNRESOLVED and type_.name is None:
        return value

    if spec.allows_null or type_.nullable:
        if type_.kind is TypeKind.BOOL and (value is False or value in (0, "0")):
            return False
        return None

    name = type_.type_name
    if type_.kind in (TypeKind.ENTITY, TypeKind.ENUM) or (
        type_.kind is TypeKind.UNRESOLVED and ("." in name or "/" in name)
    ):
        raise BindingError.parameter_must_be_object(service, spec.name, name)

    if type_.kind is TypeKind.ARRAY and type_.target is not None:
        return type_.target()
    factory = EMPTY_VALUES.get(type_.kind)
    if factory is None:
        raise BindingError.cannot_create_empty_value(service, spec.name, name)
    return factory()
