"""Errors raised while compiling documents into artifacts."""

from graphql import GraphQLError, Node


class CompileError(Exception):
    """Base class for every error the compiler raises."""


class DocumentError(GraphQLError):
    """An error pertaining to a specific node of a collected document."""

    def __init__(self, message: str, node: Node | None = None, filename: str = ""):
        super().__init__(message, node)
        self.filename = filename

    def __str__(self) -> str:
        text = super().__str__()
        if self.filename:
            return f"{self.filename}: {text}"
        return text


class DocumentErrors(CompileError):
    """A batch of document errors collected during a full walk."""

    def __init__(self, errors: list[DocumentError]):
        self.errors = errors
        self.message = "; ".join(str(e) for e in errors)
        super().__init__(self.message)


class PaginationError(CompileError):
    """A paginated field shows up somewhere pagination is not supported."""


class ListSelectionError(CompileError):
    """A list was registered without a selection to copy."""


class UnknownFragmentError(CompileError):
    """A fragment spread references a definition that was never collected."""


class ScalarConfigurationError(CompileError):
    """A custom scalar is missing the function needed to convert a value."""
