"""List transform.

Registers every field tagged as a named list (explicitly, or implicitly
through pagination) and generates the documents that let mutations edit
those lists: an insert, a toggle and a remove fragment per list, plus a
delete directive for every object type that is the target of a list.
"""

import logging
from copy import copy
from dataclasses import dataclass, field

from graphql import (
    ArgumentNode,
    BooleanValueNode,
    DirectiveDefinitionNode,
    DirectiveNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    GraphQLField,
    GraphQLNamedType,
    NamedTypeNode,
    Node,
    SelectionSetNode,
    StringValueNode,
    Visitor,
    get_named_type,
    is_list_type,
    is_non_null_type,
    is_object_type,
    print_ast,
    visit,
)

from .config import CompilerConfig
from .documents import field_definition, type_from_ancestors
from .errors import DocumentError, DocumentErrors, ListSelectionError
from .ir import ArtifactKind, Document
from .nodes import field_node, find_argument, find_directive, name_node, page_info_selection

logger = logging.getLogger(__name__)

GENERATED_LISTS = "generated::lists"


@dataclass
class ListDefinition:
    """A field registered as a named list."""
    name: str
    selection: SelectionSetNode | None
    type: GraphQLNamedType
    filename: str
    connection: bool = False
    # argument name -> named type, for the field the list is attached to
    arguments: dict[str, str] = field(default_factory=dict)


class ListRegistry:
    """The table of named lists shared by every document of a compilation."""

    def __init__(self, config: CompilerConfig):
        self.config = config
        self.lists: dict[str, ListDefinition] = {}

    def __contains__(self, name: str) -> bool:
        return name in self.lists

    def __len__(self) -> int:
        return len(self.lists)

    def get(self, name: str) -> ListDefinition | None:
        return self.lists.get(name)

    def register(self, definition: ListDefinition):
        self.lists[definition.name] = definition

    def fragment_operation(self, fragment_name: str) -> tuple[str, str] | None:
        """Map a generated fragment name to ``(list name, action)``."""
        for name in self.lists:
            if fragment_name == self.config.list_insert_fragment(name):
                return name, "insert"
            if fragment_name == self.config.list_toggle_fragment(name):
                return name, "toggle"
            if fragment_name == self.config.list_remove_fragment(name):
                return name, "remove"
        return None

    @property
    def target_types(self) -> list[str]:
        """Names of the object types that are the target of a list, in registration order."""
        names: list[str] = []
        for definition in self.lists.values():
            if is_object_type(definition.type) and definition.type.name not in names:
                names.append(definition.type.name)
        return names

    def delete_directive_type(self, directive_name: str) -> str | None:
        for type_name in self.target_types:
            if directive_name == self.config.list_delete_directive(type_name):
                return type_name
        return None

    def argument_type(self, list_name: str | None, argument: str, target_type: str | None = None) -> str | None:
        """Look up the declared type of an argument on a list's field.

        Without a list name, the first list targeting ``target_type`` that
        declares the argument is used.
        """
        if list_name is not None:
            definition = self.lists.get(list_name)
            return definition.arguments.get(argument) if definition else None
        for definition in self.lists.values():
            if definition.type.name == target_type and argument in definition.arguments:
                return definition.arguments[argument]
        return None


def connection_selection(
    definition: GraphQLField,
    field_type: GraphQLNamedType,
    selection: SelectionSetNode | None,
) -> tuple[SelectionSetNode | None, GraphQLNamedType, bool]:
    """Decide whether a field is a connection.

    A connection supports forward or backward cursor pagination, selects
    ``edges { node { ... } }`` and its type's ``edges`` field is a list of
    objects with a ``node`` field. Returns the selection and type that
    describe the members of the list along with the verdict.
    """
    arguments = {name: get_named_type(arg.type).name for name, arg in definition.args.items()}
    forward = arguments.get("first") == "Int" and arguments.get("after") == "String"
    backward = arguments.get("last") == "Int" and arguments.get("before") == "String"
    if not forward and not backward:
        return selection, field_type, False

    edges = _find_field(selection, "edges")
    node = _find_field(edges.selection_set if edges else None, "node")
    if node is None or node.selection_set is None:
        return selection, field_type, False

    edges_definition = field_definition(field_type, "edges")
    if edges_definition is None:
        return selection, field_type, False
    edges_type = edges_definition.type
    if is_non_null_type(edges_type):
        edges_type = edges_type.of_type
    if not is_list_type(edges_type):
        return selection, field_type, False

    node_definition = field_definition(get_named_type(edges_type), "node")
    if node_definition is None:
        return selection, field_type, False

    return node.selection_set, get_named_type(node_definition.type), True


def _find_field(selection: SelectionSetNode | None, name: str) -> FieldNode | None:
    if selection is None:
        return None
    for child in selection.selections:
        if isinstance(child, FieldNode) and child.name.value == name:
            return child
    return None


def _split_target(ancestors) -> tuple[list, Node | None]:
    """Split visitor ancestors into (ancestors of the target, target node)."""
    for index in range(len(ancestors) - 1, -1, -1):
        if isinstance(ancestors[index], Node):
            return list(ancestors[:index]), ancestors[index]
    return [], None


class ListVisitor(Visitor):
    """Registers tagged fields and marks the connections among them."""

    def __init__(self, config: CompilerConfig, registry: ListRegistry, doc: Document, errors: list[DocumentError]):
        super().__init__()
        self.config = config
        self.registry = registry
        self.doc = doc
        self.errors = errors

    def _error(self, message: str, node: Node):
        self.errors.append(DocumentError(message, node, self.doc.filename))

    def _classify(self, ancestors, target: FieldNode):
        parent_type = type_from_ancestors(self.config.schema, ancestors)
        definition = field_definition(parent_type, target.name.value) if parent_type else None
        if definition is None:
            return None
        return definition, connection_selection(definition, get_named_type(definition.type), target.selection_set)

    def enter_directive(self, node: DirectiveNode, _key, _parent, _path, ancestors):
        directive = node.name.value
        if directive not in (self.config.list_directive, self.config.paginate_directive):
            return None

        name_argument = find_argument(node.arguments, "name")
        if name_argument is None:
            # pagination only implies a list when it is given a name
            if directive == self.config.list_directive:
                self._error(f"@{directive} must have a name argument", node)
            return None

        if not isinstance(name_argument.value, StringValueNode):
            self._error(f"@{directive} name must be a string", node)
            return None

        name = name_argument.value.value
        if name in self.registry:
            self._error(f"@{directive} name must be unique", node)

        parent_ancestors, target = _split_target(ancestors)
        if not isinstance(target, FieldNode):
            return None
        classified = self._classify(parent_ancestors, target)
        if classified is None:
            return None
        definition, (selection, list_type, connection) = classified

        self.registry.register(
            ListDefinition(
                name=name,
                selection=selection,
                type=list_type,
                filename=self.doc.filename,
                connection=connection,
                arguments={
                    arg_name: get_named_type(arg.type).name
                    for arg_name, arg in definition.args.items()
                },
            )
        )
        logger.debug("Registered list %s of %s (connection=%s)", name, list_type.name, connection)

        if not connection:
            return None

        new_node = copy(node)
        new_node.arguments = (
            *(node.arguments or ()),
            ArgumentNode(name=name_node("connection"), value=BooleanValueNode(value=True)),
        )
        return new_node

    def enter_field(self, node: FieldNode, _key, _parent, _path, ancestors):
        if not find_directive(node, self.config.list_directive):
            return None

        classified = self._classify(ancestors, node)
        if classified is None:
            return None
        _, (_, _, connection) = classified
        if not connection:
            return None

        # list mutations need the cursors to keep a connection consistent
        new_node = copy(node)
        new_node.selection_set = SelectionSetNode(
            selections=(*node.selection_set.selections, *page_info_selection())
        )
        return new_node


def _fragment(name: str, type_name: str, selections) -> FragmentDefinitionNode:
    return FragmentDefinitionNode(
        name=name_node(name),
        variable_definitions=None,
        type_condition=NamedTypeNode(name=name_node(type_name)),
        directives=(),
        selection_set=SelectionSetNode(selections=tuple(selections)),
    )


def build_list_document(config: CompilerConfig, registry: ListRegistry) -> DocumentNode:
    """Build the fragments and directives every registered list needs."""
    definitions: list = []
    for name, definition in registry.lists.items():
        if definition.selection is None:
            raise ListSelectionError(f"List {name} must have a selection")

        selections = list(definition.selection.selections)
        if not any(isinstance(s, FieldNode) and s.name.value == "id" for s in selections):
            selections.append(field_node("id"))

        type_name = definition.type.name
        definitions.extend(
            [
                _fragment(config.list_insert_fragment(name), type_name, selections),
                _fragment(config.list_toggle_fragment(name), type_name, [*selections, field_node("id")]),
                _fragment(config.list_remove_fragment(name), type_name, [field_node("id")]),
            ]
        )

    for type_name in registry.target_types:
        # applied to the id field of a response to delete the record
        definitions.append(
            DirectiveDefinitionNode(
                description=None,
                name=name_node(config.list_delete_directive(type_name)),
                arguments=(),
                repeatable=True,
                locations=(name_node("FIELD"),),
            )
        )

    return DocumentNode(definitions=tuple(definitions))


def add_list_fragments(
    config: CompilerConfig,
    documents: list[Document],
    registry: ListRegistry,
) -> list[Document]:
    """Run the list transform over every document.

    Naming errors are collected across the whole document set and raised
    together as ``DocumentErrors``. When at least one list was registered,
    a document holding the generated definitions is appended to
    ``documents`` and returned. ``config.new_schema`` is replaced with the
    printed definitions of this run.
    """
    errors: list[DocumentError] = []
    config.new_schema = ""

    for doc in documents:
        doc.document = visit(doc.document, ListVisitor(config, registry, doc, errors))

    if errors:
        raise DocumentErrors(errors)

    if not len(registry):
        return []

    generated = build_list_document(config, registry)
    config.new_schema = "\n".join(print_ast(definition) for definition in generated.definitions)

    logger.debug(
        "Generated list fragments for %s and delete directives for %s",
        ", ".join(registry.lists), ", ".join(registry.target_types) or "no types",
    )

    new_document = Document(
        kind=ArtifactKind.FRAGMENT,
        name=GENERATED_LISTS,
        filename=GENERATED_LISTS,
        document=generated,
        original_document=generated,
        generate=False,
    )
    documents.append(new_document)
    return [new_document]
