"""Document collection and schema type helpers built on graphql-core.

Parses operation/fragment source text into ``Document`` entries and
resolves the schema types that AST nodes refer to.
"""

from typing import Sequence

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    GraphQLField,
    GraphQLNamedType,
    GraphQLSchema,
    GraphQLType,
    InlineFragmentNode,
    ListTypeNode,
    NamedTypeNode,
    NameNode,
    Node,
    NonNullTypeNode,
    OperationDefinitionNode,
    OperationType,
    TypeNode,
    get_named_type,
    is_list_type,
    is_non_null_type,
    parse,
)

from .errors import CompileError
from .ir import ArtifactKind, Document

OPERATION_KINDS = {
    OperationType.QUERY: ArtifactKind.QUERY,
    OperationType.MUTATION: ArtifactKind.MUTATION,
    OperationType.SUBSCRIPTION: ArtifactKind.SUBSCRIPTION,
}


def collect_document(source: str, filename: str | None = None) -> Document:
    """Parse a single operation or fragment into a collected document.

    The document is named after its first definition; ``filename`` defaults
    to that name when the source did not come from a file.
    """
    ast = parse(source)
    definition = ast.definitions[0]
    if isinstance(definition, OperationDefinitionNode):
        kind = OPERATION_KINDS[definition.operation]
        name = definition.name.value if definition.name else ""
    elif isinstance(definition, FragmentDefinitionNode):
        kind = ArtifactKind.FRAGMENT
        name = definition.name.value
    else:
        raise CompileError(f"Expected an operation or fragment, found {definition.kind}")

    return Document(
        kind=kind,
        name=name,
        filename=filename or name,
        document=ast,
        original_document=ast,
    )


def root_type(schema: GraphQLSchema, operation: OperationType) -> GraphQLNamedType | None:
    """Return the schema's root type for an operation."""
    if operation == OperationType.MUTATION:
        return schema.mutation_type
    if operation == OperationType.SUBSCRIPTION:
        return schema.subscription_type
    return schema.query_type


def field_definition(parent_type: GraphQLNamedType, name: str) -> GraphQLField | None:
    """Look up a field on an object or interface type."""
    fields = getattr(parent_type, "fields", None)
    if not fields:
        return None
    return fields.get(name)


def type_from_ancestors(schema: GraphQLSchema, ancestors: Sequence) -> GraphQLNamedType | None:
    """Resolve the type that selections nested under ``ancestors`` are made against.

    ``ancestors`` is the list graphql-core's visitor hands out (nodes mixed
    with the sequences that contain them), optionally extended with the
    node being visited.
    """
    current: GraphQLNamedType | None = None
    for node in ancestors:
        if not isinstance(node, Node):
            continue
        if isinstance(node, OperationDefinitionNode):
            current = root_type(schema, node.operation)
        elif isinstance(node, FragmentDefinitionNode):
            current = schema.get_type(node.type_condition.name.value)
        elif isinstance(node, InlineFragmentNode):
            if node.type_condition:
                current = schema.get_type(node.type_condition.name.value)
        elif isinstance(node, FieldNode):
            if current is None:
                return None
            definition = field_definition(current, node.name.value)
            if definition is None:
                return None
            current = get_named_type(definition.type)
    return current


def named_type_name(type_node: TypeNode) -> str:
    """Strip list and non-null wrappers from a type reference."""
    while isinstance(type_node, (NonNullTypeNode, ListTypeNode)):
        type_node = type_node.type
    assert isinstance(type_node, NamedTypeNode), f"Expected NamedTypeNode, got {type(type_node)}"
    return type_node.name.value


def type_to_ast(type_: GraphQLType) -> TypeNode:
    """Build the AST reference for a schema type, keeping its wrappers."""
    if is_non_null_type(type_):
        return NonNullTypeNode(type=type_to_ast(type_.of_type))
    if is_list_type(type_):
        return ListTypeNode(type=type_to_ast(type_.of_type))
    return NamedTypeNode(name=NameNode(value=type_.name))
