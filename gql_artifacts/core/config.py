"""Compiler configuration.

Holds the schema the documents are compiled against together with the
naming conventions shared by the transforms and the artifact compiler.

Example:
    config = CompilerConfig(
        schema=build_schema(sdl),
        type_config={"Ship": TypeConfig(keys=["shipId"], resolve_query_field="ship")},
    )
"""

from typing import Literal

from graphql import GraphQLSchema
from pydantic import BaseModel, ConfigDict, Field


class TypeConfig(BaseModel):
    """Per-type overrides for refetching a single node."""

    keys: list[str] | None = None
    resolve_query_field: str | None = None


class CompilerConfig(BaseModel):
    """Configuration consumed by every stage of the pipeline."""

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    schema_: GraphQLSchema = Field(alias="schema")
    # Schema text the last list transform generated (e.g. delete directives)
    new_schema: str = ""

    paginate_directive: str = "paginate"
    list_directive: str = "list"
    arguments_directive: str = "arguments"
    with_directive: str = "with"
    prepend_directive: str = "prepend"
    append_directive: str = "append"
    parent_id_directive: str = "parentID"
    when_directive: str = "when"
    when_not_directive: str = "when_not"

    default_keys: list[str] = Field(default_factory=lambda: ["id"])
    type_config: dict[str, TypeConfig] = Field(default_factory=dict)
    default_list_position: Literal["first", "last"] = "last"

    @property
    def schema(self) -> GraphQLSchema:
        return self.schema_

    @property
    def query_type_name(self) -> str:
        query_type = self.schema_.query_type
        return query_type.name if query_type else ""

    def pagination_query_name(self, fragment_name: str) -> str:
        return f"{fragment_name}_Pagination_Query"

    def list_insert_fragment(self, name: str) -> str:
        return f"{name}_insert"

    def list_toggle_fragment(self, name: str) -> str:
        return f"{name}_toggle"

    def list_remove_fragment(self, name: str) -> str:
        return f"{name}_remove"

    def list_delete_directive(self, type_name: str) -> str:
        return f"{type_name}_delete"

    def key_fields_for_type(self, type_name: str) -> list[str]:
        """Return the fields used to look up a node of the given type."""
        config = self.type_config.get(type_name)
        if config and config.keys:
            return list(config.keys)
        return list(self.default_keys)

    def resolve_query_field(self, type_name: str) -> str:
        """Return the root field used to refetch a node of the given type."""
        config = self.type_config.get(type_name)
        if config and config.resolve_query_field:
            return config.resolve_query_field
        return "node"

    @property
    def internal_directives(self) -> set[str]:
        """Directives that only drive compilation and never reach the server."""
        return {
            self.paginate_directive,
            self.list_directive,
            self.arguments_directive,
            self.with_directive,
            self.prepend_directive,
            self.append_directive,
            self.parent_id_directive,
            self.when_directive,
            self.when_not_directive,
        }

    def is_internal_directive(self, name: str) -> bool:
        return name in self.internal_directives
