"""Shared fixtures: the schema every test compiles against."""

import pytest
from graphql import build_schema

from gql_artifacts.core.config import CompilerConfig
from gql_artifacts.core.documents import collect_document

SCHEMA = """
scalar DateTime

interface Node {
    id: ID!
}

type PageInfo {
    hasPreviousPage: Boolean!
    hasNextPage: Boolean!
    startCursor: String
    endCursor: String
}

type User implements Node {
    id: ID!
    firstName: String!
    birthday: DateTime
    friends: [User!]!
    friendsByCursor(first: Int, after: String, last: Int, before: String, filter: String): UserConnection!
    friendsByForwardsCursor(first: Int, after: String): UserConnection!
    friendsByBackwardsCursor(last: Int, before: String): UserConnection!
    friendsByOffset(offset: Int, limit: Int, filter: String): [User!]!
}

type UserEdge {
    cursor: String
    node: User
}

type UserConnection {
    pageInfo: PageInfo!
    edges: [UserEdge!]!
}

interface Friend {
    name: String!
}

type Cat implements Friend & Node {
    id: ID!
    name: String!
    owner: User
}

type Ghost implements Friend {
    name: String!
    aka: String!
}

union Entity = User | Cat | Ghost

input NestedFilter {
    createdAt: DateTime
    tags: [String!]
}

input UserFilter {
    name: String
    since: DateTime
    nested: NestedFilter
    recursive: UserFilter
}

type Query {
    version: Int!
    user: User!
    users(stringValue: String, boolValue: Boolean, floatValue: Float, intValue: Int): [User!]!
    usersByCursor(first: Int, after: String, last: Int, before: String): UserConnection!
    usersByOffset(offset: Int, limit: Int): [User!]!
    usersFiltered(filter: UserFilter, ids: [ID!]): [User!]!
    node(id: ID!): Node
    friends: [Friend!]!
    entities: [Entity!]!
}

type AddFriendOutput {
    friend: User!
}

type DeleteUserOutput {
    userID: ID!
}

type Mutation {
    addFriend(name: String): AddFriendOutput!
    deleteUser(id: ID!): DeleteUserOutput!
    updateUser(filter: UserFilter, birthday: DateTime): User!
}

type Subscription {
    newUser: User!
}
"""


@pytest.fixture
def schema():
    """Build the test schema."""
    return build_schema(SCHEMA)


@pytest.fixture
def config(schema):
    return CompilerConfig(schema=schema)


@pytest.fixture
def make_documents():
    """Collect a document per source string, in order."""

    def factory(*sources):
        return [
            collect_document(source, filename=f"doc{index}.graphql")
            for index, source in enumerate(sources)
        ]

    return factory
