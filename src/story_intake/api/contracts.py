"""Typed wire contracts for the story backend's GraphQL endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from story_intake.domain.models import Follower, FormValues, ProductRef, StorySummary


class WireModel(BaseModel):
    """Base model config used by all response envelopes.

    The backend may grow new fields at any time, so unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EnumValue(WireModel):
    name: str = Field(min_length=1)


class EnumType(WireModel):
    enum_values: list[EnumValue] = Field(alias="enumValues")


class EnumTypeData(WireModel):
    enum_type: EnumType = Field(alias="__type")


class EnumResponse(WireModel):
    """`{data: {__type: {enumValues: [{name}]}}}`."""

    data: EnumTypeData

    def labels(self) -> tuple[str, ...]:
        return tuple(value.name for value in self.data.enum_type.enum_values)


class ProductRecord(WireModel):
    id: str = Field(min_length=1)
    name: str = Field(alias="Name")

    def to_domain(self) -> ProductRef:
        return ProductRef(id=self.id, name=self.name)


class ProductsData(WireModel):
    products: list[ProductRecord]


class ProductsResponse(WireModel):
    data: ProductsData

    def to_domain(self) -> tuple[ProductRef, ...]:
        return tuple(record.to_domain() for record in self.data.products)


class FollowerRecord(WireModel):
    username: str


class StoryRecord(WireModel):
    id: str = Field(min_length=1)
    title: str = Field(alias="Title")
    description: str = Field(default="", alias="Description")
    followers: list[FollowerRecord] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def _null_description_is_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("followers", mode="before")
    @classmethod
    def _null_followers_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    def to_domain(self) -> StorySummary:
        return StorySummary(
            id=self.id,
            title=self.title,
            description=self.description,
            followers=tuple(Follower(username=item.username) for item in self.followers),
        )


class StoriesData(WireModel):
    user_stories: list[StoryRecord] = Field(alias="userStories")


class StoriesResponse(WireModel):
    """Stories in server order (votes desc, then creation time desc)."""

    data: StoriesData

    def to_domain(self) -> tuple[StorySummary, ...]:
        return tuple(record.to_domain() for record in self.data.user_stories)


class CreateStoryInput(BaseModel):
    """Mutation `data` input; serialized with backend field names."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    description: str = Field(alias="Description", min_length=1)
    title: str = Field(alias="Title")
    category: str = Field(alias="Category")
    user_story_status: str = Field(min_length=1)
    product: str
    priority: str = Field(alias="Priority")

    @classmethod
    def from_form(cls, values: FormValues, *, status_id: str) -> CreateStoryInput:
        return cls(
            description=values.description or "",
            title=values.title or "",
            category=values.category or "",
            user_story_status=status_id,
            product=values.product or "",
            priority=values.priority or "",
        )

    def to_variables(self) -> dict[str, object]:
        return {"data": self.model_dump(mode="json", by_alias=True)}


def created_at_from_payload(payload: dict[str, object]) -> str | None:
    """Best-effort read of `createUserStory.userStory.createdAt`."""
    node: object = payload.get("data")
    for key in ("createUserStory", "userStory", "createdAt"):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, str) else None
