"""Artifact compiler.

Turns the documents left by the transforms into ``Artifact`` objects:
the printed document sent to the server, the compiled selection tree,
the input descriptor and any refetch metadata.
"""

import logging
from copy import copy

from graphql import (
    REMOVE,
    DirectiveNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    Visitor,
    is_abstract_type,
    print_ast,
    visit,
)

from .config import CompilerConfig
from .documents import root_type, type_from_ancestors
from .errors import CompileError, UnknownFragmentError
from .inputs import build_input_descriptor
from .ir import Artifact, Document
from .lists import ListRegistry
from .nodes import field_node
from .selection import TYPENAME, SelectionBuilder

logger = logging.getLogger(__name__)


def collect_fragments(documents: list[Document]) -> dict[str, FragmentDefinitionNode]:
    """Index every fragment definition of the document set by name."""
    fragments: dict[str, FragmentDefinitionNode] = {}
    for doc in documents:
        for definition in doc.document.definitions:
            if isinstance(definition, FragmentDefinitionNode):
                fragments[definition.name.value] = definition
    return fragments


def referenced_fragments(
    definition: OperationDefinitionNode | FragmentDefinitionNode,
    fragments: dict[str, FragmentDefinitionNode],
) -> list[FragmentDefinitionNode]:
    """Return the fragments ``definition`` spreads, transitively, in first-reference order."""
    found: dict[str, FragmentDefinitionNode] = {}

    def walk(selection_set: SelectionSetNode | None):
        if selection_set is None:
            return
        for selection in selection_set.selections:
            if isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                if name in found:
                    continue
                fragment = fragments.get(name)
                if fragment is None:
                    raise UnknownFragmentError(f"Unknown fragment: {name}")
                found[name] = fragment
                walk(fragment.selection_set)
            elif isinstance(selection, (FieldNode, InlineFragmentNode)):
                walk(selection.selection_set)

    walk(definition.selection_set)
    if isinstance(definition, FragmentDefinitionNode):
        found.pop(definition.name.value, None)
    return list(found.values())


class TypenameVisitor(Visitor):
    """Adds ``__typename`` to the selection of every interface or union typed field."""

    def __init__(self, config: CompilerConfig):
        super().__init__()
        self.config = config

    def enter_field(self, node: FieldNode, _key, _parent, _path, ancestors):
        if node.selection_set is None:
            return None
        field_type = type_from_ancestors(self.config.schema, [*ancestors, node])
        if field_type is None or not is_abstract_type(field_type):
            return None
        if any(
            isinstance(selection, FieldNode) and selection.name.value == TYPENAME and selection.alias is None
            for selection in node.selection_set.selections
        ):
            return None

        new_node = copy(node)
        new_node.selection_set = SelectionSetNode(
            selections=(*node.selection_set.selections, field_node(TYPENAME))
        )
        return new_node


class StripDirectivesVisitor(Visitor):
    """Removes the directives that only drive compilation."""

    def __init__(self, config: CompilerConfig, registry: ListRegistry):
        super().__init__()
        self.config = config
        self.registry = registry

    def enter_directive(self, node: DirectiveNode, *_args):
        name = node.name.value
        if self.config.is_internal_directive(name) or self.registry.delete_directive_type(name):
            return REMOVE
        return None


class ArtifactCompiler:
    """Compiles finished documents into artifacts.

    Example:
        compiler = ArtifactCompiler(config, registry, documents)
        artifacts = compiler.compile_all(documents)
    """

    def __init__(self, config: CompilerConfig, registry: ListRegistry, documents: list[Document]):
        self.config = config
        self.registry = registry
        self.fragments = collect_fragments(documents)

    def compile(self, doc: Document) -> Artifact:
        """Compile a single document."""
        definition = self._main_definition(doc)

        combined = DocumentNode(
            definitions=(definition, *referenced_fragments(definition, self.fragments))
        )
        combined = visit(combined, TypenameVisitor(self.config))
        raw = print_ast(visit(combined, StripDirectivesVisitor(self.config, self.registry)))

        # the selection is built from the documents with __typename injected
        fragments = dict(self.fragments)
        for compiled in combined.definitions[1:]:
            fragments[compiled.name.value] = compiled
        main = combined.definitions[0]

        input_descriptor = None
        if isinstance(main, OperationDefinitionNode):
            parent_type = root_type(self.config.schema, main.operation)
            input_descriptor = build_input_descriptor(self.config.schema, main)
        else:
            fragments[main.name.value] = main
            parent_type = self.config.schema.get_type(main.type_condition.name.value)
        if parent_type is None:
            raise CompileError(f"Could not find the root type of {doc.name}")

        builder = SelectionBuilder(self.config, self.registry, fragments, doc.kind)
        selection = builder.build(parent_type, main.selection_set)

        logger.debug("Compiled %s artifact %s", doc.kind.value, doc.name)
        return Artifact(
            name=doc.name,
            kind=doc.kind,
            raw=raw,
            root_type=parent_type.name,
            selection=selection,
            input=input_descriptor,
            refetch=doc.refetch,
        )

    def compile_all(self, documents: list[Document]) -> list[Artifact]:
        """Compile every document flagged for generation."""
        return [self.compile(doc) for doc in documents if doc.generate]

    @staticmethod
    def _main_definition(doc: Document) -> OperationDefinitionNode | FragmentDefinitionNode:
        for definition in doc.document.definitions:
            if isinstance(definition, (OperationDefinitionNode, FragmentDefinitionNode)):
                return definition
        raise CompileError(f"Document {doc.name} has no operation or fragment")


def compile_artifacts(
    config: CompilerConfig, documents: list[Document], registry: ListRegistry
) -> list[Artifact]:
    """Compile every document of a finished document set."""
    return ArtifactCompiler(config, registry, documents).compile_all(documents)
