"""Selection tree builder.

Walks a rewritten operation or fragment and produces the compiled
selection the runtime cache reads: one ``SelectionField`` per response
key, with the fields pulled in by fragment spreads merged in and marked
as masked, list metadata for tagged fields and, for mutations, the list
operations the response should trigger.
"""

from typing import Any

from graphql import (
    BooleanValueNode,
    DirectiveNode,
    EnumValueNode,
    FieldNode,
    FloatValueNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLField,
    GraphQLNamedType,
    InlineFragmentNode,
    IntValueNode,
    ListValueNode,
    NullValueNode,
    ObjectValueNode,
    SelectionSetNode,
    StringValueNode,
    ValueNode,
    VariableNode,
    get_named_type,
    is_abstract_type,
    print_ast,
    value_from_ast_untyped,
)

from .config import CompilerConfig
from .documents import field_definition
from .errors import CompileError, UnknownFragmentError
from .ir import ArtifactKind, ListOperation, SelectionField, merge_selections
from .lists import ListRegistry
from .nodes import find_argument, find_directive

TYPENAME = "__typename"

LITERAL_KINDS = {
    IntValueNode: ("Int", int),
    FloatValueNode: ("Float", float),
    StringValueNode: ("String", str),
    BooleanValueNode: ("Boolean", bool),
    EnumValueNode: ("Enum", str),
}


def value_descriptor(node: ValueNode) -> dict[str, Any]:
    """Describe an argument value as ``{kind, value}``.

    Variables are recorded by name; literals are parsed into Python values.
    """
    if isinstance(node, VariableNode):
        return {"kind": "Variable", "value": node.name.value}
    for node_type, (kind, parse) in LITERAL_KINDS.items():
        if isinstance(node, node_type):
            return {"kind": kind, "value": parse(node.value)}
    if isinstance(node, NullValueNode):
        return {"kind": "Null", "value": None}
    if isinstance(node, ListValueNode):
        return {"kind": "List", "value": value_from_ast_untyped(node)}
    if isinstance(node, ObjectValueNode):
        return {"kind": "Object", "value": value_from_ast_untyped(node)}
    raise CompileError(f"Unsupported argument value: {print_ast(node)}")


def key_raw(node: FieldNode, definition: GraphQLField | None) -> str:
    """Return the cache key of a field: its name and printed arguments.

    Arguments are ordered the way the schema declares them.
    """
    arguments = list(node.arguments or ())
    if not arguments:
        return node.name.value

    if definition is not None:
        order = list(definition.args)
        arguments.sort(
            key=lambda arg: order.index(arg.name.value) if arg.name.value in order else len(order)
        )

    printed = ", ".join(f"{arg.name.value}: {print_ast(arg.value)}" for arg in arguments)
    return f"{node.name.value}({printed})"


def coerce_guard_value(value: Any, type_name: str | None) -> Any:
    """Interpret a guard value written as a string according to the argument type."""
    if not isinstance(value, str) or type_name is None:
        return value
    if type_name == "Boolean":
        return value == "true"
    if type_name == "Int":
        return int(value)
    if type_name == "Float":
        return float(value)
    return value


class SelectionBuilder:
    """Builds the compiled selection for one document."""

    def __init__(
        self,
        config: CompilerConfig,
        registry: ListRegistry,
        fragments: dict[str, FragmentDefinitionNode],
        kind: ArtifactKind,
    ):
        self.config = config
        self.registry = registry
        self.fragments = fragments
        self.kind = kind

    def build(
        self,
        parent_type: GraphQLNamedType,
        selection_set: SelectionSetNode,
        masked: bool = False,
    ) -> dict[str, SelectionField]:
        """Compile a selection set made against ``parent_type``.

        ``masked`` is True while walking the contents of a fragment spread.
        """
        result: dict[str, SelectionField] = {}

        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                key, entry = self._field(parent_type, selection, masked)
                result = merge_selections(result, {key: entry})
            elif isinstance(selection, InlineFragmentNode):
                fragment_type = parent_type
                if selection.type_condition:
                    fragment_type = self.config.schema.get_type(selection.type_condition.name.value)
                result = merge_selections(
                    result, self.build(fragment_type, selection.selection_set, masked)
                )
            elif isinstance(selection, FragmentSpreadNode):
                definition = self.fragments.get(selection.name.value)
                if definition is None:
                    raise UnknownFragmentError(f"Unknown fragment: {selection.name.value}")
                fragment_type = self.config.schema.get_type(definition.type_condition.name.value)
                result = merge_selections(
                    result, self.build(fragment_type, definition.selection_set, True)
                )

        return result

    def _field(
        self, parent_type: GraphQLNamedType, node: FieldNode, masked: bool
    ) -> tuple[str, SelectionField]:
        name = node.name.value
        key = node.alias.value if node.alias else name

        if name == TYPENAME:
            return key, SelectionField(type="String", key_raw=TYPENAME, masked=masked)

        definition = field_definition(parent_type, name)
        if definition is None:
            raise CompileError(f"Type {parent_type.name} has no field {name}")
        field_type = get_named_type(definition.type)

        entry = SelectionField(
            type=field_type.name,
            key_raw=key_raw(node, definition),
            masked=masked,
        )
        if node.selection_set is not None:
            entry.fields = self.build(field_type, node.selection_set, masked)
        if is_abstract_type(field_type):
            entry.abstract = True

        list_directive = self._list_directive(node)
        if list_directive is not None:
            entry.list = find_argument(list_directive.arguments, "name").value.value
            connection = find_argument(list_directive.arguments, "connection")
            entry.connection = bool(connection and connection.value.value)
            entry.filters = {
                argument.name.value: value_descriptor(argument.value)
                for argument in node.arguments or ()
            }

        if self.kind == ArtifactKind.MUTATION:
            entry.operations = self._operations(node)

        return key, entry

    def _list_directive(self, node: FieldNode) -> DirectiveNode | None:
        directive = find_directive(node, self.config.list_directive)
        if directive is None:
            directive = find_directive(node, self.config.paginate_directive)
        if directive is None:
            return None
        name = find_argument(directive.arguments, "name")
        if name is None or not isinstance(name.value, StringValueNode):
            return None
        return directive

    def _operations(self, node: FieldNode) -> list[ListOperation]:
        operations = []

        for directive in node.directives or ():
            type_name = self.registry.delete_directive_type(directive.name.value)
            if type_name is None:
                continue
            operations.append(
                ListOperation(
                    action="delete",
                    type=type_name,
                    when=self._when(node, None, type_name),
                )
            )

        selections = node.selection_set.selections if node.selection_set else ()
        for selection in selections:
            if not isinstance(selection, FragmentSpreadNode):
                continue
            match = self.registry.fragment_operation(selection.name.value)
            if match is None:
                continue
            list_name, action = match
            operation = ListOperation(
                action=action,
                list=list_name,
                parent_id=self._parent_id(selection),
                when=self._when(selection, list_name, None),
            )
            if action in ("insert", "toggle"):
                operation.position = self._position(selection)
            operations.append(operation)

        return operations

    def _position(self, node: FragmentSpreadNode) -> str:
        if find_directive(node, self.config.prepend_directive):
            return "first"
        if find_directive(node, self.config.append_directive):
            return "last"
        return self.config.default_list_position

    def _parent_id(self, node: FragmentSpreadNode) -> dict[str, Any] | None:
        for directive_name in (self.config.prepend_directive, self.config.append_directive):
            directive = find_directive(node, directive_name)
            argument = find_argument(directive.arguments, "parentID") if directive else None
            if argument is not None:
                return value_descriptor(argument.value)

        directive = find_directive(node, self.config.parent_id_directive)
        argument = find_argument(directive.arguments, "value") if directive else None
        if argument is not None:
            return value_descriptor(argument.value)
        return None

    def _when(self, node, list_name: str | None, target_type: str | None) -> dict[str, dict[str, Any]] | None:
        """Collect the guards of a list operation as ``{must, must_not}`` maps."""
        conditions: dict[str, dict[str, Any]] = {}

        def add(kind: str, argument: ValueNode | None, value: ValueNode | None):
            if argument is None or value is None:
                return
            argument_name = value_from_ast_untyped(argument)
            type_name = self.registry.argument_type(list_name, argument_name, target_type)
            conditions.setdefault(kind, {})[argument_name] = coerce_guard_value(
                value_from_ast_untyped(value), type_name
            )

        def add_object(kind: str, guard: ValueNode):
            if not isinstance(guard, ObjectValueNode):
                return
            fields = {field.name.value: field.value for field in guard.fields}
            add(kind, fields.get("argument"), fields.get("value"))

        for directive_name in (self.config.prepend_directive, self.config.append_directive):
            directive = find_directive(node, directive_name)
            if directive is None:
                continue
            for argument_name, kind in (("when", "must"), ("when_not", "must_not")):
                argument = find_argument(directive.arguments, argument_name)
                if argument is not None:
                    add_object(kind, argument.value)

        for directive_name, kind in (
            (self.config.when_directive, "must"),
            (self.config.when_not_directive, "must_not"),
        ):
            directive = find_directive(node, directive_name)
            if directive is None:
                continue
            argument = find_argument(directive.arguments, "argument")
            value = find_argument(directive.arguments, "value")
            add(kind, argument.value if argument else None, value.value if value else None)

        return conditions or None
