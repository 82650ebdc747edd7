"""User Schemas — boundary validation before requests reach the service."""

import pytest
from pydantic import ValidationError

from app.core.user import User, UserCreateRequest, UserUpdate
from app.schemas.user import UserCreate, UserResponse, UserUpdateBody


def test_create_strips_and_converts():
    body = UserCreate(name=" Jane ", username="janedoe123", email="jane.doe@example.com")
    assert body.to_request() == UserCreateRequest(
        name="Jane", username="janedoe123", email="jane.doe@example.com",
    )


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "janedoe123", "email": "jane.doe@example.com"},
        {"name": "   ", "username": "janedoe123", "email": "jane.doe@example.com"},
        {"name": "Jane", "username": "jane doe", "email": "jane.doe@example.com"},
        {"name": "Jane", "username": "janedoe123", "email": "not-an-email"},
    ],
)
def test_create_rejects_bad_input(payload):
    with pytest.raises(ValidationError):
        UserCreate(**payload)


def test_name_may_contain_spaces():
    assert UserCreate(**{
        "name": "Jane Doe", "username": "janedoe123", "email": "jane.doe@example.com",
    }).name == "Jane Doe"
    assert UserUpdateBody(id="01HZX", name="  Jane Smith ").name == "Jane Smith"


def test_update_body_rejects_spaced_username():
    with pytest.raises(ValidationError):
        UserUpdateBody(id="01HZX", username="jane doe")


def test_update_body_keeps_missing_fields_none():
    body = UserUpdateBody(id="01HZX", email="new@example.com")
    assert body.to_update() == UserUpdate(id="01HZX", email="new@example.com")


def test_update_body_requires_id():
    with pytest.raises(ValidationError):
        UserUpdateBody(name="Jane")


def test_response_from_user():
    user = User(id="01HZX", name="Jane", username="jane", email="j@example.com")
    assert UserResponse.from_user(user).model_dump() == {
        "id": "01HZX", "name": "Jane", "username": "jane", "email": "j@example.com",
    }
