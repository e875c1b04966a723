"""Builders for the synthetic AST nodes the transforms inject.

graphql-core nodes are plain objects whose child collections are tuples,
as the parser produces them; these helpers keep the keyword
noise of constructing them out of the transforms.
"""

from typing import Any, Iterable, Sequence

from graphql import (
    ArgumentNode,
    BooleanValueNode,
    DirectiveNode,
    FieldNode,
    FloatValueNode,
    FragmentSpreadNode,
    IntValueNode,
    NamedTypeNode,
    NameNode,
    ObjectFieldNode,
    ObjectValueNode,
    SelectionSetNode,
    StringValueNode,
    ValueNode,
    VariableDefinitionNode,
    VariableNode,
)


def name_node(value: str) -> NameNode:
    return NameNode(value=value)


def field_node(name: str, selections: Sequence | None = None) -> FieldNode:
    """Build a field, with a selection set when ``selections`` is given."""
    return FieldNode(
        name=name_node(name),
        alias=None,
        arguments=(),
        directives=(),
        selection_set=SelectionSetNode(selections=tuple(selections)) if selections is not None else None,
    )


def find_directive(node: Any, name: str) -> DirectiveNode | None:
    """Return the first directive called ``name`` on ``node``."""
    for directive in node.directives or ():
        if directive.name.value == name:
            return directive
    return None


def find_argument(arguments: Iterable[ArgumentNode] | None, name: str) -> ArgumentNode | None:
    for argument in arguments or ():
        if argument.name.value == name:
            return argument
    return None


def directive_node(name: str, arguments: Sequence[ArgumentNode] = ()) -> DirectiveNode:
    return DirectiveNode(name=name_node(name), arguments=tuple(arguments))


def variable_as_argument(name: str) -> ArgumentNode:
    """Build ``name: $name``."""
    return ArgumentNode(name=name_node(name), value=VariableNode(name=name_node(name)))


def literal_node(value: Any) -> ValueNode:
    """Build the literal for a scalar default value."""
    if isinstance(value, bool):
        return BooleanValueNode(value=value)
    if isinstance(value, int):
        return IntValueNode(value=str(value))
    if isinstance(value, float):
        return FloatValueNode(value=str(value))
    return StringValueNode(value=str(value), block=False)


def static_variable_definition(name: str, type_name: str, default_value: Any = None) -> VariableDefinitionNode:
    """Build ``$name: Type = default``; falsy defaults are left off."""
    return VariableDefinitionNode(
        variable=VariableNode(name=name_node(name)),
        type=NamedTypeNode(name=name_node(type_name)),
        default_value=literal_node(default_value) if default_value else None,
        directives=(),
    )


def arguments_entry(name: str, type_name: str, default_value: Any = None) -> ArgumentNode:
    """Build one entry of the fragment arguments directive.

    The value is an object literal ``{type: "Int", default: 10}``; the
    default is omitted when it is falsy.
    """
    fields = [ObjectFieldNode(name=name_node("type"), value=StringValueNode(value=type_name, block=False))]
    if default_value:
        fields.append(ObjectFieldNode(name=name_node("default"), value=literal_node(default_value)))
    return ArgumentNode(name=name_node(name), value=ObjectValueNode(fields=tuple(fields)))


def fragment_spread(name: str, directives: Sequence[DirectiveNode] = ()) -> FragmentSpreadNode:
    return FragmentSpreadNode(name=name_node(name), directives=tuple(directives))


def page_info_selection() -> list[FieldNode]:
    """The selections every cursor-paginated field needs.

    ``edges { cursor node { __typename } } pageInfo { hasPreviousPage
    hasNextPage startCursor endCursor }``; fresh nodes on every call.
    """
    return [
        field_node(
            "edges",
            [
                field_node("cursor"),
                field_node("node", [field_node("__typename")]),
            ],
        ),
        field_node(
            "pageInfo",
            [
                field_node("hasPreviousPage"),
                field_node("hasNextPage"),
                field_node("startCursor"),
                field_node("endCursor"),
            ],
        ),
    ]
