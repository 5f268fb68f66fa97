"""GraphQL request descriptors used by the new-story workflow.

User-entered text never lands in a query document; it travels as variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final

CATEGORY_ENUM: Final = "ENUM_USERSTORY_CATEGORY"
PRIORITY_ENUM: Final = "ENUM_USERSTORY_PRIORITY"
STORY_SORT: Final = "votes:desc,createdAt:desc"

ENUM_VALUES_QUERY: Final = """
query EnumValues($name: String!) {
  __type(name: $name) {
    enumValues {
      name
    }
  }
}
"""

PRODUCTS_QUERY: Final = """
query Products {
  products {
    id
    Name
  }
}
"""

USER_STORIES_QUERY: Final = """
query UserStories($sort: String) {
  userStories(sort: $sort) {
    id
    Title
    Description
    followers {
      username
    }
  }
}
"""

CREATE_USER_STORY_MUTATION: Final = """
mutation CreateUserStory($data: UserStoryInput) {
  createUserStory(input: { data: $data }) {
    userStory {
      createdAt
    }
  }
}
"""


@dataclass(frozen=True)
class GraphQLRequest:
    """One GraphQL operation plus whether session credentials are attached."""

    operation: str
    query: str
    variables: dict[str, Any] = field(default_factory=dict)
    with_credentials: bool = False

    def body(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": self.query}
        if self.variables:
            payload["variables"] = self.variables
        return payload


def enum_values_request(type_name: str) -> GraphQLRequest:
    return GraphQLRequest(
        operation=f"enum:{type_name}",
        query=ENUM_VALUES_QUERY,
        variables={"name": type_name},
    )


def products_request() -> GraphQLRequest:
    return GraphQLRequest(operation="products", query=PRODUCTS_QUERY, with_credentials=True)


def user_stories_request(sort: str = STORY_SORT) -> GraphQLRequest:
    return GraphQLRequest(
        operation="userStories",
        query=USER_STORIES_QUERY,
        variables={"sort": sort},
        with_credentials=True,
    )


def create_user_story_request(variables: dict[str, Any]) -> GraphQLRequest:
    return GraphQLRequest(
        operation="createUserStory",
        query=CREATE_USER_STORY_MUTATION,
        variables=variables,
        with_credentials=True,
    )
