"""Match existing stories against the title being typed."""

from __future__ import annotations

from collections.abc import Iterable

from story_intake.domain.models import StorySummary


def search_stories(stories: Iterable[StorySummary], title: str | None) -> list[StorySummary]:
    """Stories whose title contains every term of `title`, case-insensitively.

    An empty query returns all stories; server order is kept either way.
    """
    terms = (title or "").casefold().split()
    if not terms:
        return list(stories)
    return [
        story for story in stories if all(term in story.title.casefold() for term in terms)
    ]
