"""Pagination transform.

Prepares documents containing a field marked with the pagination directive
so that more data can be fetched later:

- the tagged field gets its pagination arguments replaced with variables
  (any literal value becomes that variable's default) and, for cursor
  based pagination, a page info selection;
- the variables are hoisted onto the enclosing query, or onto the
  fragment's arguments directive so the default values can be inlined
  wherever the fragment is spread without pagination arguments;
- for fragments, a query document is synthesized that threads its
  variables through to the fragment with the ``with`` directive, embedding
  it in a node lookup when the fragment is not on the root query type.
"""

import logging
from copy import copy

from graphql import (
    ArgumentNode,
    DocumentNode,
    FieldNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    VariableDefinitionNode,
    VariableNode,
    Visitor,
    visit,
)

from .config import CompilerConfig
from .documents import field_definition, type_from_ancestors, type_to_ast
from .errors import PaginationError
from .ir import (
    ArtifactKind,
    Document,
    PaginationFlag,
    RefetchDescriptor,
    RefetchUpdateMode,
)
from .nodes import (
    arguments_entry,
    directive_node,
    find_directive,
    fragment_spread,
    name_node,
    page_info_selection,
    static_variable_definition,
    variable_as_argument,
)

logger = logging.getLogger(__name__)


def pagination_flags() -> dict[str, PaginationFlag]:
    """Return a fresh, fully disabled set of pagination flags."""
    return {
        "first": PaginationFlag(type="Int"),
        "after": PaginationFlag(type="String"),
        "last": PaginationFlag(type="Int"),
        "before": PaginationFlag(type="String"),
        "limit": PaginationFlag(type="Int"),
        "offset": PaginationFlag(type="Int"),
    }


def enabled_flags(flags: dict[str, PaginationFlag]) -> list[tuple[str, PaginationFlag]]:
    return [(name, flag) for name, flag in flags.items() if flag.enabled]


def replace_arguments_with_variables(
    arguments, flags: dict[str, PaginationFlag]
) -> tuple[ArgumentNode, ...]:
    """Turn the pagination arguments of a field into variable references.

    Literal values are remembered as the default value of their flag.
    Enabled flags that the field does not pass yet get a variable added.
    """
    seen: set[str] = set()
    new_arguments = []
    for argument in arguments or ():
        name = argument.name.value
        flag = flags.get(name)
        if flag is None or not flag.enabled:
            new_arguments.append(argument)
            continue

        if not isinstance(argument.value, VariableNode):
            old_value = argument.value.value
            flag.default_value = int(old_value) if flag.type == "Int" else old_value

        seen.add(name)
        new_arguments.append(variable_as_argument(name))

    for name, flag in flags.items():
        if flag.default_value or not flag.enabled or name in seen:
            continue
        # forward arguments never go on a field paginating backwards, and vice versa
        if name in ("first", "after") and flags["before"].enabled:
            continue
        if name in ("last", "before") and flags["first"].enabled:
            continue
        new_arguments.append(variable_as_argument(name))

    return tuple(new_arguments)


class PaginatedFieldVisitor(Visitor):
    """Finds the field tagged for pagination and rewrites it."""

    def __init__(self, config: CompilerConfig, flags: dict[str, PaginationFlag]):
        super().__init__()
        self.config = config
        self.flags = flags
        self.paginated = False
        self.path: list[str] = []

    def enter_field(self, node: FieldNode, _key, _parent, _path, ancestors):
        if not find_directive(node, self.config.paginate_directive) or not node.selection_set:
            return None

        self.paginated = True

        parent_type = type_from_ancestors(self.config.schema, ancestors)
        definition = field_definition(parent_type, node.name.value) if parent_type else None
        declared = set(definition.args) if definition else set()
        passed = {argument.name.value for argument in node.arguments or ()}

        # at most one cursor direction; forward wins when the call site is silent
        forward = "last" not in passed and {"first", "after"} <= declared
        backward = not forward and "first" not in passed and {"last", "before"} <= declared
        offset = not forward and not backward and {"offset", "limit"} <= declared

        self.flags["first"].enabled = forward
        self.flags["after"].enabled = forward
        self.flags["last"].enabled = backward
        self.flags["before"].enabled = backward
        self.flags["offset"].enabled = offset
        self.flags["limit"].enabled = offset

        fields = [ancestor for ancestor in ancestors if isinstance(ancestor, FieldNode)] + [node]
        self.path = [field.alias.value if field.alias else field.name.value for field in fields]

        logger.debug(
            "Paginating %s (forward=%s, backward=%s, offset=%s)",
            ".".join(self.path), forward, backward, offset,
        )

        new_node = copy(node)
        new_node.arguments = replace_arguments_with_variables(node.arguments, self.flags)
        if not offset:
            new_node.selection_set = SelectionSetNode(
                selections=(*node.selection_set.selections, *page_info_selection())
            )
        return new_node


class HoistArgumentsVisitor(Visitor):
    """Adds the enabled pagination arguments to the enclosing definition."""

    def __init__(self, config: CompilerConfig, flags: dict[str, PaginationFlag]):
        super().__init__()
        self.config = config
        self.flags = flags
        self.fragment = ""
        self.fragment_name = ""
        self.refetch_query_name = ""
        self.embedded = False

    def enter_operation_definition(self, node: OperationDefinitionNode, *_args):
        if node.operation != OperationType.QUERY:
            raise PaginationError(
                f"@{self.config.paginate_directive} can only show up in a query or fragment document"
            )

        self.refetch_query_name = node.name.value if node.name else ""

        existing = {
            definition.variable.name.value: definition
            for definition in node.variable_definitions or ()
        }
        hoisted = {
            name: static_variable_definition(name, flag.type, flag.default_value)
            for name, flag in enabled_flags(self.flags)
        }
        names = list(existing) + [name for name in hoisted if name not in existing]

        new_node = copy(node)
        new_node.variable_definitions = tuple(existing.get(name) or hoisted[name] for name in names)
        return new_node

    def enter_fragment_definition(self, node, *_args):
        self.fragment = node.type_condition.name.value
        self.fragment_name = node.name.value
        self.refetch_query_name = self.config.pagination_query_name(self.fragment_name)
        # a fragment has to be embedded in a node lookup unless it is on the query type
        self.embedded = self.fragment != self.config.query_type_name

        if find_directive(node, self.config.arguments_directive):
            return None

        # add the directive here, its arguments are filled in when it is visited
        new_node = copy(node)
        new_node.directives = (
            *(node.directives or ()),
            directive_node(self.config.arguments_directive),
        )
        return new_node

    def enter_directive(self, node, *_args):
        if node.name.value != self.config.arguments_directive:
            return None

        existing = {argument.name.value for argument in node.arguments or ()}
        new_arguments = [
            arguments_entry(name, flag.type, flag.default_value)
            for name, flag in enabled_flags(self.flags)
            if name not in existing
        ]
        new_node = copy(node)
        new_node.arguments = (*(node.arguments or ()), *new_arguments)
        return new_node


def refetch_target_type(config: CompilerConfig, fragment_type: str) -> str:
    """Return the type a refetch query resolves to."""
    if not fragment_type:
        return config.query_type_name

    node_interface = config.schema.get_type("Node")
    if node_interface is None:
        return fragment_type

    candidate = config.schema.get_type(fragment_type)
    if candidate is not None and config.schema.is_sub_type(node_interface, candidate):
        return "Node"
    return fragment_type


def build_refetch(
    flags: dict[str, PaginationFlag],
    path: list[str],
    embedded: bool,
    target_type: str,
) -> RefetchDescriptor:
    refetch = RefetchDescriptor(
        update=RefetchUpdateMode.PREPEND if flags["last"].enabled else RefetchUpdateMode.APPEND,
        path=path,
        method="cursor" if flags["first"].enabled or flags["last"].enabled else "offset",
        embedded=embedded,
        target_type=target_type,
    )
    if flags["first"].enabled:
        refetch.page_size = flags["first"].default_value
        refetch.start = flags["after"].default_value
    elif flags["last"].enabled:
        refetch.page_size = flags["last"].default_value
        refetch.start = flags["before"].default_value
    elif flags["limit"].enabled:
        refetch.page_size = flags["limit"].default_value
        refetch.start = flags["offset"].default_value
    return refetch


def build_refetch_query(
    config: CompilerConfig,
    flags: dict[str, PaginationFlag],
    query_name: str,
    fragment_name: str,
    fragment_type: str,
    embedded: bool,
) -> DocumentNode:
    """Build the query that refetches a paginated fragment."""
    pagination_args = enabled_flags(flags)

    spread = fragment_spread(
        fragment_name,
        [
            directive_node(
                config.with_directive,
                [variable_as_argument(name) for name, _ in pagination_args],
            )
        ],
    )

    variable_definitions = [
        static_variable_definition(name, flag.type, flag.default_value)
        for name, flag in pagination_args
    ]

    if not embedded:
        selections = [spread]
    else:
        schema_type = config.schema.get_type(fragment_type)
        keys = config.key_fields_for_type(fragment_type)
        for key in keys:
            variable_definitions.append(
                VariableDefinitionNode(
                    variable=VariableNode(name=name_node(key)),
                    type=type_to_ast(schema_type.fields[key].type),
                    default_value=None,
                    directives=(),
                )
            )
        selections = [
            FieldNode(
                name=name_node(config.resolve_query_field(fragment_type)),
                alias=None,
                arguments=tuple(variable_as_argument(key) for key in keys),
                directives=(),
                selection_set=SelectionSetNode(selections=(spread,)),
            )
        ]

    return DocumentNode(
        definitions=(
            OperationDefinitionNode(
                operation=OperationType.QUERY,
                name=name_node(query_name),
                variable_definitions=tuple(variable_definitions),
                directives=(),
                selection_set=SelectionSetNode(selections=tuple(selections)),
            ),
        )
    )


def paginate(config: CompilerConfig, documents: list[Document]) -> list[Document]:
    """Run the pagination transform over every document.

    Documents are rewritten in place. Refetch queries synthesized for
    paginated fragments are appended to ``documents`` and returned.
    """
    new_documents: list[Document] = []

    for doc in documents:
        flags = pagination_flags()

        field_visitor = PaginatedFieldVisitor(config, flags)
        doc.document = visit(doc.document, field_visitor)
        if not field_visitor.paginated:
            continue

        hoist_visitor = HoistArgumentsVisitor(config, flags)
        doc.document = visit(doc.document, hoist_visitor)

        doc.refetch = build_refetch(
            flags,
            field_visitor.path,
            hoist_visitor.embedded,
            refetch_target_type(config, hoist_visitor.fragment),
        )

        # queries can be refetched as they are
        if not hoist_visitor.fragment:
            continue

        query_document = build_refetch_query(
            config,
            flags,
            hoist_visitor.refetch_query_name,
            hoist_visitor.fragment_name,
            hoist_visitor.fragment,
            hoist_visitor.embedded,
        )
        logger.debug(
            "Generated %s to refetch fragment %s",
            hoist_visitor.refetch_query_name, hoist_visitor.fragment_name,
        )
        new_documents.append(
            Document(
                kind=ArtifactKind.QUERY,
                name=hoist_visitor.refetch_query_name,
                filename=doc.filename,
                document=query_document,
                original_document=query_document,
                generate=True,
                refetch=doc.refetch,
            )
        )

    documents.extend(new_documents)
    return new_documents
