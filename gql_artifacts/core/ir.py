"""Intermediate Representation (IR) for compiled GraphQL documents.

This module defines the dataclasses shared by every stage of the pipeline:
the collected documents that the transforms rewrite, and the artifacts
(selection trees, input descriptors, refetch metadata) that the compiler
emits for the runtime. ``to_dict`` on each artifact type produces the
persisted wire shape.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from graphql import DocumentNode


class ArtifactKind(str, Enum):
    """The kind of document an artifact was compiled from."""
    QUERY = "Query"
    MUTATION = "Mutation"
    SUBSCRIPTION = "Subscription"
    FRAGMENT = "Fragment"


class RefetchUpdateMode(str, Enum):
    """How a page of refetched data is merged into an existing list."""
    APPEND = "append"
    PREPEND = "prepend"


@dataclass
class PaginationFlag:
    """Describes one pagination argument of a paginated field."""
    type: str  # 'Int' or 'String'
    enabled: bool = False
    default_value: Any = None


@dataclass
class RefetchDescriptor:
    """Everything a client needs to re-run a paginated document."""
    update: RefetchUpdateMode
    path: list[str]
    method: str  # 'cursor' or 'offset'
    page_size: Any = 0
    start: Any = None
    embedded: bool = False
    target_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = {
            "update": self.update.value,
            "path": list(self.path),
            "method": self.method,
            "pageSize": self.page_size,
            "embedded": self.embedded,
            "targetType": self.target_type,
        }
        if self.start is not None:
            result["start"] = self.start
        return result


@dataclass
class Document:
    """A single operation or fragment collected for compilation.

    ``document`` is rewritten by the transforms; ``original_document`` keeps
    the AST as it was collected.
    """
    kind: ArtifactKind
    name: str
    filename: str
    document: DocumentNode
    original_document: DocumentNode
    generate: bool = True
    refetch: RefetchDescriptor | None = None


@dataclass
class ListOperation:
    """A cache edit a mutation performs when its response arrives."""
    action: str  # 'insert', 'toggle', 'remove' or 'delete'
    list: str | None = None
    type: str | None = None
    position: str | None = None  # 'first' or 'last'
    parent_id: dict[str, Any] | None = None
    when: dict[str, dict[str, Any]] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action": self.action}
        if self.list is not None:
            result["list"] = self.list
        if self.type is not None:
            result["type"] = self.type
        if self.position is not None:
            result["position"] = self.position
        if self.parent_id is not None:
            result["parentID"] = dict(self.parent_id)
        if self.when is not None:
            result["when"] = {key: dict(value) for key, value in self.when.items()}
        return result


@dataclass
class SelectionField:
    """One entry of a compiled selection, keyed by response alias.

    ``masked`` is True when the field only reaches this level through a
    fragment spread. ``fields`` holds the nested selection for object,
    interface and union types.
    """
    type: str | None
    key_raw: str
    masked: bool = False
    fields: dict[str, "SelectionField"] | None = None
    abstract: bool = False
    # declared ahead of `list`, which shadows the builtin in the class body
    operations: list[ListOperation] = field(default_factory=list)
    list: str | None = None
    connection: bool = False
    filters: dict[str, dict[str, Any]] | None = None

    def merge(self, other: "SelectionField") -> "SelectionField":
        """Combine two occurrences of the same response key."""
        fields = self.fields
        if other.fields is not None:
            fields = merge_selections(self.fields or {}, other.fields)
        return SelectionField(
            type=self.type or other.type,
            key_raw=self.key_raw,
            masked=self.masked and other.masked,
            fields=fields,
            abstract=self.abstract or other.abstract,
            list=self.list or other.list,
            connection=self.connection or other.connection,
            filters=self.filters if self.filters is not None else other.filters,
            operations=self.operations + other.operations,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.type is not None:
            result["type"] = self.type
        result["keyRaw"] = self.key_raw
        result["masked"] = self.masked
        if self.fields is not None:
            result["fields"] = selection_to_dict(self.fields)
        if self.abstract:
            result["abstract"] = True
        if self.operations:
            result["operations"] = [op.to_dict() for op in self.operations]
        if self.list is not None:
            result["list"] = self.list
            if self.connection:
                result["connection"] = True
            result["filters"] = {
                name: dict(value) for name, value in (self.filters or {}).items()
            }
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SelectionField":
        """Rebuild a field from its persisted form (operations are not restored)."""
        fields = data.get("fields")
        return cls(
            type=data.get("type"),
            key_raw=data.get("keyRaw", ""),
            masked=data.get("masked", False),
            fields=selection_from_dict(fields) if fields is not None else None,
            abstract=data.get("abstract", False),
            list=data.get("list"),
            connection=data.get("connection", False),
            filters=data.get("filters"),
        )


def merge_selections(
    target: dict[str, SelectionField], source: dict[str, SelectionField]
) -> dict[str, SelectionField]:
    """Merge ``source`` into a copy of ``target``, keeping target's key order."""
    result = dict(target)
    for key, value in source.items():
        result[key] = result[key].merge(value) if key in result else value
    return result


def selection_to_dict(selection: dict[str, SelectionField]) -> dict[str, Any]:
    return {key: value.to_dict() for key, value in selection.items()}


def selection_from_dict(data: dict[str, Any]) -> dict[str, SelectionField]:
    return {key: SelectionField.from_dict(value) for key, value in data.items()}


@dataclass
class InputDescriptor:
    """Type information for the variables of an operation.

    ``fields`` maps variable names to named types; ``types`` maps each
    reachable input object type to its own field types.
    """
    fields: dict[str, str] = field(default_factory=dict)
    types: dict[str, dict[str, str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": dict(self.fields),
            "types": {name: dict(shape) for name, shape in self.types.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InputDescriptor":
        return cls(
            fields=dict(data.get("fields", {})),
            types={name: dict(shape) for name, shape in data.get("types", {}).items()},
        )


@dataclass
class Artifact:
    """The compiled, persisted unit produced for one document."""
    name: str
    kind: ArtifactKind
    raw: str
    root_type: str
    selection: dict[str, SelectionField]
    input: InputDescriptor | None = None
    refetch: RefetchDescriptor | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "raw": self.raw,
            "rootType": self.root_type,
            "selection": selection_to_dict(self.selection),
        }
        if self.input is not None:
            result["input"] = self.input.to_dict()
        if self.refetch is not None:
            result["refetch"] = self.refetch.to_dict()
        return result
