"""Top-level argument binding.

`ArgumentBinder.bind` turns a callable's parameter specs and an untyped
payload into `BoundArguments`. Two binding modes exist:

1. Single entity: the callable takes exactly one entity parameter (other than
   a date/time value). The payload is either `{"<param>": {...}}` or the
   entity's fields directly.
2. Per parameter: every parameter is resolved from the payload on its own,
   with the reserved `data` parameter, declared as a mapping, receiving the
   whole payload when raw data mode is on.

Every `BindingError` leaving `bind` carries the method name and the raw input.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._errors import BindingError
from ._hydrate import ObjectHydrator, is_scalar_value
from ._metadata import SignatureMetadataProvider
from ._resolver import default_resolver
from ._types import BoundArguments, RecursionGuard, TypeKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._metadata import MetadataProvider
    from ._resolver import EntityResolver
    from ._types import ParameterSpec, TypeDescriptor

logger = logging.getLogger(__name__)

RAW_DATA_PARAMETER = "data"


@dataclass(frozen=True, slots=True)
class BindingResult:
    """Outcome of `ArgumentBinder.try_bind`.

    Attributes:
        arguments: The bound arguments, or None on failure.
        error: The binding error, or None on success.

    """

    arguments: BoundArguments | None = None
    error: BindingError | None = None

    @property
    def success(self) -> bool:
        """Check if binding completed without errors."""
        return self.error is None


def is_single_entity_call(parameters: Sequence[ParameterSpec]) -> bool:
    """Check if the whole payload should be bound to one entity parameter."""
    if len(parameters) != 1:
        return False
    type_ = parameters[0].type
    return type_.kind is TypeKind.ENTITY and not type_.is_temporal


def accepts_payload(type_: TypeDescriptor) -> bool:
    """Check if the raw payload mapping can be bound to a parameter of this type."""
    if type_.kind is not TypeKind.ARRAY:
        return False
    return type_.target is None or issubclass(type_.target, Mapping)


class ArgumentBinder:
    """Bind raw payloads to callable parameters.

    The binder holds no per-call state; each `bind` call starts from a fresh
    recursion guard, so identical inputs always give identical outputs.

    Args:
        metadata: Describes entity classes. Defaults to `SignatureMetadataProvider`.
        resolver: Resolves scalars to entities. Defaults to `default_resolver()`,
            which only builds date and time values.

    """

    def __init__(
        self,
        metadata: MetadataProvider | None = None,
        resolver: EntityResolver | None = None,
    ) -> None:
        self.metadata = metadata if metadata is not None else SignatureMetadataProvider()
        self.resolver = resolver if resolver is not None else default_resolver()

    def bind(
        self,
        service: object,
        method: str,
        parameters: Sequence[ParameterSpec],
        params: Mapping[str, Any],
        *,
        raw_data_mode: bool = False,
    ) -> BoundArguments:
        """Bind `params` to `parameters`.

        Args:
            service: Service identity, used in error messages.
            method: Name of the method being bound, attached to errors.
            parameters: The method's parameter specs, in declaration order.
            params: The raw input mapping. It is only read.
            raw_data_mode: Bind the whole payload to a parameter named `data`.

        Returns:
            Arguments in declaration order.

        Raises:
            BindingError: On the first parameter that can not be bound,
                decorated with `method` and `params`.

        """
        hydrator = ObjectHydrator(service, self.metadata, self.resolver)
        try:
            if is_single_entity_call(parameters):
                arguments = {parameters[0].name: self._bind_single_entity(hydrator, parameters[0], params)}
            else:
                arguments = self._bind_parameters(hydrator, parameters, params, raw_data_mode=raw_data_mode)
        except BindingError as e:
            logger.debug(f"Binding {method} failed: {e.kind}")
            e.with_context(method, params)
            raise
        return BoundArguments(arguments=arguments, parameters=tuple(parameters))

    def try_bind(
        self,
        service: object,
        method: str,
        parameters: Sequence[ParameterSpec],
        params: Mapping[str, Any],
        *,
        raw_data_mode: bool = False,
    ) -> BindingResult:
        """Like `bind`, but return a `BindingResult` instead of raising."""
        try:
            arguments = self.bind(service, method, parameters, params, raw_data_mode=raw_data_mode)
        except BindingError as e:
            return BindingResult(error=e)
        return BindingResult(arguments=arguments)

    def _bind_single_entity(
        self,
        hydrator: ObjectHydrator,
        parameter: ParameterSpec,
        params: Mapping[str, Any],
    ) -> object:
        logger.debug(f"Binding whole payload to entity parameter '{parameter.name}'")
        nested = params.get(parameter.name)
        target = parameter.type.target
        if target is not None and isinstance(nested, target):
            return nested
        # A nested mapping or object under the parameter's name; otherwise the payload is the entity itself
        if nested is not None and not is_scalar_value(nested) and not isinstance(nested, list | tuple):
            return hydrator.hydrate(parameter.type, nested, RecursionGuard())
        return hydrator.hydrate(parameter.type, params, RecursionGuard())

    def _bind_parameters(
        self,
        hydrator: ObjectHydrator,
        parameters: Sequence[ParameterSpec],
        params: Mapping[str, Any],
        *,
        raw_data_mode: bool,
    ) -> dict[str, Any]:
        arguments: dict[str, Any] = {}
        for spec in parameters:
            if raw_data_mode and spec.name == RAW_DATA_PARAMETER:
                if not accepts_payload(spec.type):
                    undeclared = spec.type.kind is TypeKind.UNRESOLVED and spec.type.name is None
                    declared = None if undeclared else str(spec.type)
                    raise BindingError.data_must_be_array(hydrator.service, declared)
                container = spec.type.target or dict
                arguments[spec.name] = container(params)
                continue
            arguments[spec.name] = hydrator.resolve_parameter(spec, params, RecursionGuard())
            logger.debug(f"Bound parameter '{spec.name}' = {arguments[spec.name]!r}")
        return arguments
