"""Bind untyped payloads to typed callable arguments."""

__all__ = [
    "ArgumentBinder",
    "BindingError",
    "BindingErrorKind",
    "BindingResult",
    "BoundArguments",
    "ChainResolver",
    "ConsoleReporter",
    "DefaultRetrievalFailed",
    "EntityRepository",
    "EntityResolver",
    "EntityShape",
    "ErrorReporter",
    "FieldSpec",
    "HasDefault",
    "LoggingReporter",
    "MetadataProvider",
    "NoDefault",
    "ObjectHydrator",
    "ParameterSpec",
    "RecursionGuard",
    "RepositoryResolver",
    "ServiceMethodInvoker",
    "SetterSpec",
    "SignatureMetadataProvider",
    "TemporalResolver",
    "TypeDescriptor",
    "TypeKind",
    "default_resolver",
    "describe_type",
]

from ._binder import ArgumentBinder, BindingResult
from ._errors import BindingError, BindingErrorKind
from ._hydrate import ObjectHydrator
from ._invoke import ServiceMethodInvoker
from ._metadata import MetadataProvider, SignatureMetadataProvider, describe_type
from ._report import ConsoleReporter, ErrorReporter, LoggingReporter
from ._resolver import (
    ChainResolver,
    EntityRepository,
    EntityResolver,
    RepositoryResolver,
    TemporalResolver,
    default_resolver,
)
from ._types import (
    BoundArguments,
    DefaultRetrievalFailed,
    EntityShape,
    FieldSpec,
    HasDefault,
    NoDefault,
    ParameterSpec,
    RecursionGuard,
    SetterSpec,
    TypeDescriptor,
    TypeKind,
)
