"""Core new-story domain models."""

from __future__ import annotations

from dataclasses import dataclass

TITLE = "title"
SOURCE_CODE_LINK = "source_code_link"
DESCRIPTION = "description"
CATEGORY = "category"
PRIORITY = "priority"
PRODUCT = "product"

FORM_FIELDS: tuple[str, ...] = (
    TITLE,
    SOURCE_CODE_LINK,
    DESCRIPTION,
    CATEGORY,
    PRIORITY,
    PRODUCT,
)


@dataclass(frozen=True)
class ProductRef:
    """A product a new story can be filed against."""

    id: str
    name: str


@dataclass(frozen=True)
class Follower:
    username: str


@dataclass(frozen=True)
class StorySummary:
    """An existing story shown in the title-search sidebar."""

    id: str
    title: str
    description: str
    followers: tuple[Follower, ...] = ()

    def follower_names(self) -> list[str]:
        return [follower.username for follower in self.followers]


@dataclass(frozen=True)
class FormValues:
    """Snapshot of the form at submit time.

    `description` stays `None` until the rich-text editor reports a change.
    """

    title: str | None = None
    source_code_link: str | None = None
    description: str | None = None
    category: str | None = None
    priority: str | None = None
    product: str | None = None

    @classmethod
    def from_mapping(cls, values: dict[str, str | None]) -> FormValues:
        return cls(**{name: values.get(name) for name in FORM_FIELDS})


@dataclass(frozen=True)
class ReferenceData:
    """Server-provided option lists held for the lifetime of the form."""

    categories: tuple[str, ...] = ()
    priorities: tuple[str, ...] = ()
    products: tuple[ProductRef, ...] = ()
    stories: tuple[StorySummary, ...] = ()

    def product_ids(self) -> list[str]:
        return [product.id for product in self.products]
