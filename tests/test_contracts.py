from __future__ import annotations

import pytest
from pydantic import ValidationError

from story_intake.api.contracts import (
    CreateStoryInput,
    EnumResponse,
    ProductsResponse,
    created_at_from_payload,
)
from story_intake.domain.models import FormValues


def test_enum_response_ignores_extra_keys() -> None:
    response = EnumResponse.model_validate(
        {
            "data": {
                "__type": {
                    "name": "ENUM_USERSTORY_PRIORITY",
                    "enumValues": [{"name": "High", "description": None}],
                }
            },
            "extensions": {},
        }
    )
    assert response.labels() == ("High",)


def test_products_response_requires_name() -> None:
    with pytest.raises(ValidationError):
        ProductsResponse.model_validate({"data": {"products": [{"id": "p1"}]}})


def test_create_story_input_uses_backend_field_names() -> None:
    values = FormValues(
        title="  padded  ",
        source_code_link="https://git.example.com",
        description="<p>x</p>",
        category="Bug",
        priority="High",
        product="p1",
    )
    variables = CreateStoryInput.from_form(values, status_id="s-1").to_variables()
    assert variables == {
        "data": {
            "Description": "<p>x</p>",
            "Title": "  padded  ",
            "Category": "Bug",
            "user_story_status": "s-1",
            "product": "p1",
            "Priority": "High",
        }
    }


def test_created_at_is_best_effort() -> None:
    assert (
        created_at_from_payload({"data": {"createUserStory": {"userStory": {"createdAt": "t"}}}})
        == "t"
    )
    assert created_at_from_payload({"data": {"createUserStory": None}}) is None
    assert created_at_from_payload({}) is None
