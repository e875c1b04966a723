#!/usr/bin/env python3
"""Demonstration of compiling GraphQL documents into artifacts.

This script shows how to:
1. Build a compiler configuration for a schema
2. Run a paginated fragment, a list and a mutation through the pipeline
3. Display the artifacts and convert a response's custom scalars

Note: This demo doesn't make real API calls - it just demonstrates
what the runtime receives.
"""

import json

from graphql import build_schema

from gql_artifacts.core import (
    CompilerConfig,
    ScalarRegistry,
    collect_document,
    run_pipeline,
    unmarshal_selection,
)

SCHEMA = """
scalar DateTime

interface Node { id: ID! }

type User implements Node {
    id: ID!
    name: String!
    joined: DateTime
    friends(first: Int, after: String): UserConnection!
}

type UserEdge { cursor: String node: User }
type PageInfo { hasPreviousPage: Boolean! hasNextPage: Boolean! startCursor: String endCursor: String }
type UserConnection { edges: [UserEdge!]! pageInfo: PageInfo! }

type Query { viewer: User! node(id: ID!): Node }
type Mutation { addFriend(name: String!): User! }
"""

DOCUMENTS = [
    """
    fragment ViewerFriends on User {
        friends(first: 10) @paginate(name: "Viewer_Friends") {
            edges {
                node {
                    name
                    joined
                }
            }
        }
    }
    """,
    """
    query Viewer {
        viewer {
            id
            joined
            ...ViewerFriends
        }
    }
    """,
    """
    mutation AddFriend($name: String!) {
        addFriend(name: $name) {
            ...Viewer_Friends_insert @prepend
        }
    }
    """,
]


def main():
    print("=== Artifact Compiler Demo ===\n")

    print("1. Building configuration...")
    config = CompilerConfig(schema=build_schema(SCHEMA))

    print("\n2. Running the pipeline...")
    documents = [collect_document(source) for source in DOCUMENTS]
    artifacts = run_pipeline(config, documents)
    print(f"   {len(documents)} documents, {len(artifacts)} artifacts")

    for artifact in artifacts:
        print(f"\n--- {artifact.kind.value} {artifact.name} ---")
        print(artifact.raw)
        print(json.dumps(artifact.to_dict()["selection"], indent=2))
        if artifact.refetch:
            print(f"   refetch: {artifact.refetch.to_dict()}")

    print("\n3. Unmarshaling a response...")
    viewer = next(artifact for artifact in artifacts if artifact.name == "Viewer")
    response = {"viewer": {"id": "1", "joined": "2024-01-15T10:30:00Z"}}
    data = unmarshal_selection(ScalarRegistry(), viewer.selection, response)
    print(f"   joined: {data['viewer']['joined']!r}")

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    main()
