"""Core modules for compiling GraphQL documents into runtime artifacts."""

from .artifacts import ArtifactCompiler, collect_fragments, compile_artifacts
from .config import CompilerConfig, TypeConfig
from .documents import collect_document
from .errors import (
    CompileError,
    DocumentError,
    DocumentErrors,
    ListSelectionError,
    PaginationError,
    ScalarConfigurationError,
    UnknownFragmentError,
)
from .inputs import build_input_descriptor
from .ir import (
    Artifact,
    ArtifactKind,
    Document,
    InputDescriptor,
    ListOperation,
    PaginationFlag,
    RefetchDescriptor,
    RefetchUpdateMode,
    SelectionField,
)
from .lists import ListDefinition, ListRegistry, add_list_fragments
from .paginate import paginate
from .pipeline import run_pipeline
from .scalars import (
    DEFAULT_SCALARS,
    ScalarFunctions,
    ScalarHandler,
    ScalarRegistry,
    marshal_inputs,
    marshal_selection,
    unmarshal_selection,
)
from .selection import SelectionBuilder

__all__ = [
    # Config
    "CompilerConfig",
    "TypeConfig",
    # Errors
    "CompileError",
    "DocumentError",
    "DocumentErrors",
    "ListSelectionError",
    "PaginationError",
    "ScalarConfigurationError",
    "UnknownFragmentError",
    # IR types
    "Artifact",
    "ArtifactKind",
    "Document",
    "InputDescriptor",
    "ListOperation",
    "PaginationFlag",
    "RefetchDescriptor",
    "RefetchUpdateMode",
    "SelectionField",
    # Documents
    "collect_document",
    # Transforms
    "paginate",
    "ListDefinition",
    "ListRegistry",
    "add_list_fragments",
    # Compiler
    "ArtifactCompiler",
    "SelectionBuilder",
    "build_input_descriptor",
    "collect_fragments",
    "compile_artifacts",
    "run_pipeline",
    # Scalars
    "DEFAULT_SCALARS",
    "ScalarHandler",
    "ScalarFunctions",
    "ScalarRegistry",
    "marshal_inputs",
    "marshal_selection",
    "unmarshal_selection",
]
