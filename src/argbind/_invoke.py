"""Invoke a service method with arguments bound from a raw payload."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ._binder import ArgumentBinder
from ._errors import BindingError
from ._metadata import SignatureMetadataProvider

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._metadata import MetadataProvider
    from ._report import ErrorReporter
    from ._resolver import EntityResolver

logger = logging.getLogger(__name__)


class ServiceMethodInvoker:
    """Bind a payload to a service method and call it.

    Args:
        metadata: Describes methods and entity classes. Defaults to `SignatureMetadataProvider`.
        resolver: Resolves scalars to entities. Optional.
        reporter: Receives binding errors before they are re-raised. Optional.

    Example:
        >>> class Greeter:
        ...     def greet(self, name: str, times: int = 1) -> str:
        ...         return " ".join([f"Hello {name}"] * times)
        >>> ServiceMethodInvoker().invoke(Greeter(), "greet", {"name": "Ada", "times": "2"})
        'Hello Ada Hello Ada'

    """

    def __init__(
        self,
        metadata: MetadataProvider | None = None,
        resolver: EntityResolver | None = None,
        reporter: ErrorReporter | None = None,
    ) -> None:
        self.metadata = metadata if metadata is not None else SignatureMetadataProvider()
        self.binder = ArgumentBinder(self.metadata, resolver)
        self.reporter = reporter

    def invoke(
        self,
        service: object,
        method_name: str,
        params: Mapping[str, Any],
        *,
        data_must_be_array: bool = False,
    ) -> Any:
        """Call `service.method_name` with arguments bound from `params`.

        Args:
            service: The object owning the method. Its `str()` names it in errors.
            method_name: Name of the method to call.
            params: The raw input mapping.
            data_must_be_array: Bind the whole payload to a parameter named `data`.

        Returns:
            Whatever the method returns.

        Raises:
            AttributeError: If the service has no such method.
            BindingError: If the payload can not be bound.

        """
        method = getattr(service, method_name)
        parameters = self.metadata.describe_parameters(method)
        try:
            bound = self.binder.bind(service, method_name, parameters, params, raw_data_mode=data_must_be_array)
        except BindingError as e:
            if self.reporter is not None:
                self.reporter.report(e)
            raise
        logger.debug(f"Invoking {type(service).__name__}.{method_name} with {len(bound)} argument(s)")
        return bound.call(method)
