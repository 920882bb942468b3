"""Binding failures.

Every failure the binder can report is a `BindingError` tagged with a
`BindingErrorKind`. The binder decorates the error with the attempted method
name and the full raw input before it leaves `bind`, so a diagnostic sink has
everything it needs without unwrapping anything.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class BindingErrorKind(StrEnum):
    """What went wrong while binding."""

    PARAMETER_MISSING = "ParameterMissing"
    DATA_MUST_BE_ARRAY = "DataMustBeArray"
    PARAMETER_MUST_BE_OBJECT = "ParameterMustBeObject"
    CANNOT_CREATE_EMPTY_VALUE_FOR_TYPE = "CannotCreateEmptyValueForType"
    UNKNOWN_ENTITY = "UnknownEntity"
    CIRCULAR_REFERENCE = "CircularReference"
    REQUIRED_PROPERTY_MISSING = "RequiredPropertyMissing"
    INVALID_ENUM_VALUE = "InvalidEnumValue"
    CANNOT_CONVERT_SCALAR_TO_ENTITY = "CannotConvertScalarToEntity"
    INVALID_SCALAR_VALUE = "InvalidScalarValue"
    NULL_NOT_ALLOWED = "NullNotAllowed"


class BindingError(Exception):
    """Raw input could not be reconciled with a callable's parameters.

    Attributes:
        kind: The failure kind.
        service: The service the method belongs to (any object; `str()` is used in messages).
        method: Name of the attempted method, set by the binder.
        params: The complete raw input, set by the binder.
        details: Structured data about the failure (parameter name, options, trace, ...).

    """

    def __init__(
        self,
        kind: BindingErrorKind,
        service: object,
        message: str,
        *,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.service = service
        self.message = message
        self.details: dict[str, Any] = dict(details or {})
        self.method: str | None = None
        self.params: dict[str, Any] | None = None

    def with_context(self, method: str | None, params: Mapping[str, Any] | None) -> Self:
        """Attach the attempted method name and the raw input, returning self."""
        self.method = method
        self.params = dict(params) if params is not None else None
        return self

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!s}, method={self.method!r}, message={self.message!r})"

    # -----------------------------------------------------------------------
    # Factories
    # -----------------------------------------------------------------------

    @classmethod
    def parameter_missing(
        cls,
        service: object,
        parameter: str,
        position: int,
        declaring_context: str | None = None,
    ) -> Self:
        where = f" of {declaring_context}()" if declaring_context else ""
        msg = f"{service}: Parameter '{parameter}'{where} on position #{position} does not exist."
        return cls(
            BindingErrorKind.PARAMETER_MISSING,
            service,
            msg,
            details={"parameter": parameter, "position": position, "declaring_context": declaring_context},
        )

    @classmethod
    def data_must_be_array(cls, service: object, type_name: str | None) -> Self:
        given = "No type has been declared." if type_name is None else f"Type '{type_name}' given."
        msg = f"{service}: Parameter 'data' must be an array of key-value pairs (a dict). {given}"
        return cls(BindingErrorKind.DATA_MUST_BE_ARRAY, service, msg, details={"type": type_name})

    @classmethod
    def parameter_must_be_object(cls, service: object, parameter: str, type_name: str) -> Self:
        msg = f"{service}: Parameter '{parameter}' must be an object of type '{type_name}', but empty value given."
        return cls(
            BindingErrorKind.PARAMETER_MUST_BE_OBJECT,
            service,
            msg,
            details={"parameter": parameter, "type": type_name},
        )

    @classmethod
    def cannot_create_empty_value(cls, service: object, parameter: str, type_name: str) -> Self:
        msg = f"{service}: Can not create default empty value for parameter '{parameter}' of type '{type_name}'."
        return cls(
            BindingErrorKind.CANNOT_CREATE_EMPTY_VALUE_FOR_TYPE,
            service,
            msg,
            details={"parameter": parameter, "type": type_name},
        )

    @classmethod
    def unknown_entity(cls, service: object, type_name: str) -> Self:
        msg = f"{service}: Entity class '{type_name}' does not exist or can not be described."
        return cls(BindingErrorKind.UNKNOWN_ENTITY, service, msg, details={"type": type_name})

    @classmethod
    def circular_reference(cls, service: object, type_name: str, trace: Iterable[str]) -> Self:
        trace = list(trace)
        msg = (
            f"{service}: Circular dependency has been discovered, because entity '{type_name}' is already "
            f"being constructed.\nCurrent stack trace: {', '.join(trace)}"
        )
        return cls(
            BindingErrorKind.CIRCULAR_REFERENCE,
            service,
            msg,
            details={"type": type_name, "trace": trace},
        )

    @classmethod
    def required_property_missing(
        cls,
        service: object,
        entity: str,
        prop: str,
        *,
        allows_scalar: bool,
        type_name: str,
    ) -> Self:
        scalar = " scalar" if allows_scalar else ""
        msg = f"{service}: Property '{prop}' of entity '{entity}' is required. Please set some{scalar} value of type '{type_name}'."
        return cls(
            BindingErrorKind.REQUIRED_PROPERTY_MISSING,
            service,
            msg,
            details={"entity": entity, "property": prop, "allows_scalar": allows_scalar, "type": type_name},
        )

    @classmethod
    def invalid_enum_value(cls, service: object, parameter: str, value: object, options: Iterable[Any]) -> Self:
        options = list(options)
        listed = ", ".join(repr(option) for option in options)
        msg = f"{service}: Value {value!r} of parameter '{parameter}' is not a valid option. Valid options are: {listed}."
        return cls(
            BindingErrorKind.INVALID_ENUM_VALUE,
            service,
            msg,
            details={"parameter": parameter, "value": value, "options": options},
        )

    @classmethod
    def cannot_convert_scalar_to_entity(cls, service: object, type_name: str, value: object) -> Self:
        msg = f"{service}: Value {value!r} (type '{type(value).__name__}') can not be converted to entity '{type_name}'."
        return cls(
            BindingErrorKind.CANNOT_CONVERT_SCALAR_TO_ENTITY,
            service,
            msg,
            details={"type": type_name, "value": value},
        )

    @classmethod
    def invalid_scalar_value(cls, service: object, parameter: str, value: object, type_name: str) -> Self:
        msg = f"{service}: Value {value!r} of parameter '{parameter}' can not be converted to '{type_name}'."
        return cls(
            BindingErrorKind.INVALID_SCALAR_VALUE,
            service,
            msg,
            details={"parameter": parameter, "value": value, "type": type_name},
        )

    @classmethod
    def null_not_allowed(cls, service: object, parameter: str, type_name: str) -> Self:
        msg = f"{service}: Parameter '{parameter}' of type '{type_name}' is not nullable, but 'null' given."
        return cls(
            BindingErrorKind.NULL_NOT_ALLOWED,
            service,
            msg,
            details={"parameter": parameter, "type": type_name},
        )
