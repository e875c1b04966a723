"""Tests for the pagination transform."""

import pytest
from graphql import FieldNode, FragmentSpreadNode, VariableNode, Visitor, print_ast, visit

from gql_artifacts.core.config import CompilerConfig, TypeConfig
from gql_artifacts.core.errors import PaginationError
from gql_artifacts.core.ir import ArtifactKind, RefetchUpdateMode
from gql_artifacts.core.paginate import paginate


def find_field(selection_set, name):
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode) and selection.name.value == name:
            return selection
    raise AssertionError(f"no field {name}")


def argument_map(node):
    return {
        argument.name.value: argument.value
        for argument in node.arguments
    }


def variable_names(operation):
    return [definition.variable.name.value for definition in operation.variable_definitions]


class TestForwardPagination:
    """Tests for cursor pagination going forwards."""

    SOURCE = """
        fragment UserFriends on User {
            friendsByForwardsCursor(first: 10) @paginate {
                edges {
                    node {
                        id
                    }
                }
            }
        }
    """

    def test_arguments_become_variables(self, config, make_documents):
        documents = make_documents(self.SOURCE)
        paginate(config, documents)

        fragment = documents[0].document.definitions[0]
        field = find_field(fragment.selection_set, "friendsByForwardsCursor")
        arguments = argument_map(field)

        assert list(arguments) == ["first", "after"]
        assert all(isinstance(value, VariableNode) for value in arguments.values())

    def test_rewritten_nodes_hold_tuples(self, config, make_documents):
        documents = make_documents(self.SOURCE)
        new_documents = paginate(config, documents)

        fragment = documents[0].document.definitions[0]
        field = find_field(fragment.selection_set, "friendsByForwardsCursor")
        assert isinstance(field.arguments, tuple)
        assert isinstance(field.selection_set.selections, tuple)
        assert isinstance(fragment.directives, tuple)

        # graphql-core refuses to walk lists
        for doc in documents + new_documents:
            visit(doc.document, Visitor())

    def test_page_info_is_selected(self, config, make_documents):
        documents = make_documents(self.SOURCE)
        paginate(config, documents)

        printed = print_ast(documents[0].document)
        for name in ("cursor", "__typename", "hasPreviousPage", "hasNextPage", "startCursor", "endCursor"):
            assert name in printed

    def test_fragment_arguments_directive(self, config, make_documents):
        documents = make_documents(self.SOURCE)
        paginate(config, documents)

        fragment = documents[0].document.definitions[0]
        directive = fragment.directives[0]
        assert directive.name.value == "arguments"

        entries = argument_map(directive)
        assert list(entries) == ["first", "after"]
        first = {field.name.value: field.value.value for field in entries["first"].fields}
        after = {field.name.value: field.value.value for field in entries["after"].fields}
        assert first == {"type": "Int", "default": "10"}
        assert after == {"type": "String"}

    def test_refetch_descriptor(self, config, make_documents):
        documents = make_documents(self.SOURCE)
        paginate(config, documents)

        refetch = documents[0].refetch
        assert refetch.update == RefetchUpdateMode.APPEND
        assert refetch.method == "cursor"
        assert refetch.page_size == 10
        assert refetch.start is None
        assert refetch.path == ["friendsByForwardsCursor"]
        assert refetch.embedded is True
        assert refetch.target_type == "Node"

    def test_refetch_query_wraps_node_lookup(self, config, make_documents):
        documents = make_documents(self.SOURCE)
        new_documents = paginate(config, documents)

        assert len(new_documents) == 1
        assert documents[-1] is new_documents[0]

        query = new_documents[0]
        assert query.name == "UserFriends_Pagination_Query"
        assert query.kind == ArtifactKind.QUERY
        assert query.refetch is documents[0].refetch

        operation = query.document.definitions[0]
        assert variable_names(operation) == ["first", "after", "id"]
        assert print_ast(operation.variable_definitions[2].type) == "ID!"

        lookup = operation.selection_set.selections[0]
        assert lookup.name.value == "node"
        assert list(argument_map(lookup)) == ["id"]

        spread = lookup.selection_set.selections[0]
        assert isinstance(spread, FragmentSpreadNode)
        assert spread.name.value == "UserFriends"
        assert spread.directives[0].name.value == "with"
        assert list(argument_map(spread.directives[0])) == ["first", "after"]

    def test_refetch_query_prints(self, config, make_documents):
        documents = make_documents(self.SOURCE)
        query = paginate(config, documents)[0]

        printed = print_ast(query.document)
        assert printed.startswith(
            "query UserFriends_Pagination_Query($first: Int = 10, $after: String, $id: ID!)"
        )
        assert "node(id: $id)" in printed
        assert "...UserFriends @with(first: $first, after: $after)" in printed

    def test_custom_lookup_field(self, schema, make_documents):
        config = CompilerConfig(
            schema=schema,
            type_config={"User": TypeConfig(resolve_query_field="user")},
        )
        documents = make_documents(self.SOURCE)
        query = paginate(config, documents)[0]

        lookup = query.document.definitions[0].selection_set.selections[0]
        assert lookup.name.value == "user"


class TestBackwardPagination:
    """Tests for cursor pagination going backwards."""

    def test_last_selects_backwards(self, config, make_documents):
        documents = make_documents(
            """
            query Users {
                usersByCursor(last: 5) @paginate {
                    edges {
                        node {
                            id
                        }
                    }
                }
            }
            """
        )
        paginate(config, documents)

        operation = documents[0].document.definitions[0]
        field = find_field(operation.selection_set, "usersByCursor")
        assert list(argument_map(field)) == ["last", "before"]
        assert variable_names(operation) == ["last", "before"]

        refetch = documents[0].refetch
        assert refetch.update == RefetchUpdateMode.PREPEND
        assert refetch.page_size == 5
        assert refetch.method == "cursor"

    def test_backwards_only_field(self, config, make_documents):
        documents = make_documents(
            """
            fragment Backwards on User {
                friendsByBackwardsCursor(last: 2) @paginate {
                    edges {
                        node {
                            id
                        }
                    }
                }
            }
            """
        )
        paginate(config, documents)

        fragment = documents[0].document.definitions[0]
        field = find_field(fragment.selection_set, "friendsByBackwardsCursor")
        assert list(argument_map(field)) == ["last", "before"]
        assert documents[0].refetch.update == RefetchUpdateMode.PREPEND


class TestQueryPagination:
    """Tests for paginated fields inside queries."""

    def test_variables_are_hoisted(self, config, make_documents):
        documents = make_documents(
            """
            query Users {
                usersByCursor(first: 10) @paginate {
                    edges {
                        node {
                            id
                        }
                    }
                }
            }
            """
        )
        new_documents = paginate(config, documents)

        assert new_documents == []
        assert len(documents) == 1

        printed = print_ast(documents[0].document)
        assert printed.startswith("query Users($first: Int = 10, $after: String)")

        refetch = documents[0].refetch
        assert refetch.embedded is False
        assert refetch.target_type == "Query"

    def test_existing_variables_win(self, config, make_documents):
        documents = make_documents(
            """
            query Users($first: Int = 25) {
                usersByCursor(first: $first) @paginate {
                    edges {
                        node {
                            id
                        }
                    }
                }
            }
            """
        )
        paginate(config, documents)

        operation = documents[0].document.definitions[0]
        assert variable_names(operation) == ["first", "after"]
        assert print_ast(operation.variable_definitions[0].default_value) == "25"

    def test_one_direction_without_call_site_arguments(self, config, make_documents):
        documents = make_documents(
            """
            query Users {
                usersByCursor @paginate {
                    edges {
                        node {
                            id
                        }
                    }
                }
            }
            """
        )
        paginate(config, documents)

        operation = documents[0].document.definitions[0]
        field = find_field(operation.selection_set, "usersByCursor")
        assert list(argument_map(field)) == ["first", "after"]
        assert variable_names(operation) == ["first", "after"]

        refetch = documents[0].refetch
        assert refetch.method == "cursor"
        assert refetch.update == RefetchUpdateMode.APPEND

    def test_offset_pagination(self, config, make_documents):
        documents = make_documents(
            """
            query Users {
                usersByOffset(limit: 10) @paginate {
                    id
                }
            }
            """
        )
        paginate(config, documents)

        operation = documents[0].document.definitions[0]
        field = find_field(operation.selection_set, "usersByOffset")
        assert list(argument_map(field)) == ["limit", "offset"]
        assert [selection.name.value for selection in field.selection_set.selections] == ["id"]
        assert variable_names(operation) == ["limit", "offset"]

        refetch = documents[0].refetch
        assert refetch.method == "offset"
        assert refetch.page_size == 10
        assert refetch.update == RefetchUpdateMode.APPEND

    def test_nested_path(self, config, make_documents):
        documents = make_documents(
            """
            query UserFriends {
                viewer: user {
                    friendsByOffset(limit: 3) @paginate {
                        id
                    }
                }
            }
            """
        )
        paginate(config, documents)

        assert documents[0].refetch.path == ["viewer", "friendsByOffset"]

    def test_mutation_is_rejected(self, config, make_documents):
        documents = make_documents(
            """
            mutation AddFriend {
                addFriend {
                    friend {
                        friendsByOffset(limit: 3) @paginate {
                            id
                        }
                    }
                }
            }
            """
        )
        with pytest.raises(PaginationError):
            paginate(config, documents)

    def test_unpaginated_documents_pass_through(self, config, make_documents):
        documents = make_documents("query Version { version }")
        original = documents[0].document

        assert paginate(config, documents) == []
        assert documents[0].refetch is None
        assert print_ast(documents[0].document) == print_ast(original)


class TestFragmentOnQuery:
    """Tests for paginated fragments on the root query type."""

    def test_refetch_query_spreads_fragment(self, config, make_documents):
        documents = make_documents(
            """
            fragment AllUsers on Query {
                usersByCursor(first: 10) @paginate {
                    edges {
                        node {
                            id
                        }
                    }
                }
            }
            """
        )
        query = paginate(config, documents)[0]

        operation = query.document.definitions[0]
        assert variable_names(operation) == ["first", "after"]

        spread = operation.selection_set.selections[0]
        assert isinstance(spread, FragmentSpreadNode)
        assert spread.name.value == "AllUsers"

        assert documents[0].refetch.embedded is False
        assert documents[0].refetch.target_type == "Query"

    def test_hoisting_is_repeatable(self, config, make_documents):
        source = """
            fragment AllUsers on Query {
                usersByCursor(first: 10) @paginate {
                    edges {
                        node {
                            id
                        }
                    }
                }
            }
        """
        first = make_documents(source)
        second = make_documents(source)
        paginate(config, first)
        paginate(config, second)

        assert print_ast(first[0].document) == print_ast(second[0].document)
        assert first[0].refetch == second[0].refetch
