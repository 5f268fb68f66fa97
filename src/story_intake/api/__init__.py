"""GraphQL client, request descriptors and wire contracts for the story backend."""

from story_intake.api.client import StoryGraphQLClient
from story_intake.api.queries import (
    CATEGORY_ENUM,
    PRIORITY_ENUM,
    GraphQLRequest,
    create_user_story_request,
    enum_values_request,
    products_request,
    user_stories_request,
)

__all__ = [
    "CATEGORY_ENUM",
    "PRIORITY_ENUM",
    "GraphQLRequest",
    "StoryGraphQLClient",
    "create_user_story_request",
    "enum_values_request",
    "products_request",
    "user_stories_request",
]
