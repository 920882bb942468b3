"""Tests for the signature-based metadata provider."""

import datetime
import inspect
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Annotated, Any, ClassVar, Optional

import pytest
from pydantic import BaseModel

from argbind._metadata import SignatureMetadataProvider, describe_type
from argbind._types import DefaultRetrievalFailed, HasDefault, NoDefault, TypeKind


class Color(StrEnum):
    RED = "red"
    GREEN = "green"


class Priority(IntEnum):
    LOW = 1
    HIGH = 2


@dataclass
class Point:
    x: int
    y: str
    label: str | None = None
    tags: list[str] = field(default_factory=list)
    created: int = field(init=False, default=0)


def _explode() -> list[str]:
    msg = "no default today"
    raise RuntimeError(msg)


@dataclass
class Broken:
    values: list[str] = field(default_factory=_explode)


class Account(BaseModel):
    id: int
    email: str
    nickname: str | None = None


class Legacy:
    name: str
    active: bool = True
    registry: ClassVar[dict[str, str]] = {}

    def set_name(self, value: str) -> None:
        self.name = value.strip()


class Service:
    def create(self, count: int, title: str = "untitled") -> None:
        pass


def handler(count: int, name: str = "x", *items: str, flag: bool = False, **extra: Any) -> None:
    pass


def nullable_default(limit: int = None) -> None:  # noqa: RUF013
    pass


class TestDescribeType:
    @pytest.mark.parametrize(
        ("annotation", "kind"),
        [
            (bool, TypeKind.BOOL),
            (int, TypeKind.INT),
            (float, TypeKind.FLOAT),
            (str, TypeKind.STRING),
            (list, TypeKind.ARRAY),
            (list[int], TypeKind.ARRAY),
            (dict[str, int], TypeKind.ARRAY),
            (tuple[int, ...], TypeKind.ARRAY),
            (None, TypeKind.NULL),
            (Annotated[int, "meta"], TypeKind.INT),
        ],
    )
    def test_kinds(self, annotation: object, kind: TypeKind) -> None:
        assert describe_type(annotation).kind is kind

    @pytest.mark.parametrize(
        ("annotation", "container"),
        [
            (list, list),
            (list[int], list),
            (dict[str, int], dict),
            (tuple[int, ...], tuple),
            (frozenset, frozenset),
            (Sequence[str], list),
            (Mapping[str, int], dict),
            (Set[int], set),
        ],
    )
    def test_array_container(self, annotation: object, container: type) -> None:
        descriptor = describe_type(annotation)
        assert descriptor.kind is TypeKind.ARRAY
        assert descriptor.target is container

    def test_optional(self) -> None:
        assert describe_type(int | None).nullable is True
        assert describe_type(Optional[str]).kind is TypeKind.STRING  # noqa: UP045
        assert describe_type(int).nullable is False

    def test_str_enum_is_enum(self) -> None:
        descriptor = describe_type(Color)
        assert descriptor.kind is TypeKind.ENUM
        assert descriptor.target is Color

    def test_int_enum_is_enum(self) -> None:
        assert describe_type(Priority).kind is TypeKind.ENUM

    def test_class_is_entity(self) -> None:
        descriptor = describe_type(Point)
        assert descriptor.kind is TypeKind.ENTITY
        assert descriptor.target is Point

    @pytest.mark.parametrize("annotation", [inspect.Parameter.empty, Any])
    def test_undeclared(self, annotation: object) -> None:
        descriptor = describe_type(annotation)
        assert descriptor.kind is TypeKind.UNRESOLVED
        assert descriptor.name is None
        assert descriptor.nullable is True

    def test_forward_reference_keeps_name(self) -> None:
        descriptor = describe_type("Missing")
        assert descriptor.kind is TypeKind.UNRESOLVED
        assert descriptor.name == "Missing"

    def test_multi_member_union(self) -> None:
        descriptor = describe_type(int | str | None)
        assert descriptor.kind is TypeKind.UNRESOLVED
        assert descriptor.name == "int | string"
        assert descriptor.nullable is True


class TestDescribeParameters:
    def test_function(self) -> None:
        specs = SignatureMetadataProvider().describe_parameters(handler)

        assert [spec.name for spec in specs] == ["count", "name", "items", "flag"]
        assert [spec.position for spec in specs] == [0, 1, 2, 3]

        count, name, items, flag = specs
        assert count.default == NoDefault()
        assert count.is_optional is False
        assert count.allows_null is False
        assert name.default == HasDefault("x")
        assert items.variadic is True
        assert items.type.kind is TypeKind.ARRAY
        assert items.type.target is tuple
        assert items.default == HasDefault(())
        assert flag.keyword_only is True
        assert count.declaring_context == "handler"

    def test_bound_method(self) -> None:
        specs = SignatureMetadataProvider().describe_parameters(Service().create)

        assert [spec.name for spec in specs] == ["count", "title"]
        assert specs[0].type.kind is TypeKind.INT
        assert specs[0].declaring_context == "Service.create"

    def test_none_default_allows_null(self) -> None:
        (limit,) = SignatureMetadataProvider().describe_parameters(nullable_default)
        assert limit.allows_null is True


class TestDescribeEntity:
    def test_dataclass(self) -> None:
        shape = SignatureMetadataProvider().describe_entity(Point)

        assert shape is not None
        assert [p.name for p in shape.parameters] == ["x", "y", "label", "tags"]
        assert shape.parameters[2].allows_null is True
        assert shape.parameters[3].default == HasDefault([])
        assert [f.name for f in shape.fields] == ["created"]

    def test_failing_default_factory(self) -> None:
        shape = SignatureMetadataProvider().describe_entity(Broken)

        assert shape is not None
        default = shape.parameters[0].default
        assert isinstance(default, DefaultRetrievalFailed)
        assert "RuntimeError" in default.reason
        assert shape.parameters[0].is_optional is False

    def test_pydantic_model(self) -> None:
        shape = SignatureMetadataProvider().describe_entity(Account)

        assert shape is not None
        assert [p.name for p in shape.parameters] == ["id", "email", "nickname"]
        assert all(p.keyword_only for p in shape.parameters)
        assert shape.parameters[0].default == NoDefault()
        assert shape.parameters[2].default == HasDefault(None)
        assert shape.parameters[2].allows_null is True
        assert shape.fields == ()

    def test_plain_class_with_setter(self) -> None:
        shape = SignatureMetadataProvider().describe_entity(Legacy)

        assert shape is not None
        assert shape.parameters == ()
        assert [f.name for f in shape.fields] == ["name", "active"]
        name, active = shape.fields
        assert name.setter is not None
        assert name.setter.method_name == "set_name"
        assert name.setter.parameter.name == "name"
        assert name.setter.parameter.type.kind is TypeKind.STRING
        assert active.setter is None

    @pytest.mark.parametrize("target", [int, str, datetime.datetime, datetime.date])
    def test_undescribable_types(self, target: type) -> None:
        assert SignatureMetadataProvider().describe_entity(target) is None

    def test_shape_name_is_qualified(self) -> None:
        shape = SignatureMetadataProvider().describe_entity(Point)

        assert shape is not None
        assert shape.name.endswith("test_metadata.Point")
