"""User Entity — id assignment and partial update projection."""

from app.core.user import User, UserCreateRequest, UserUpdate


def test_create_request_builds_user_with_given_id():
    request = UserCreateRequest(
        name="Jane Doe", username="janedoe123", email="jane.doe@example.com",
    )
    assert request.to_user("01J0000000000000000000000") == User(
        id="01J0000000000000000000000", name="Jane Doe",
        username="janedoe123", email="jane.doe@example.com",
    )


def test_update_changes_only_provided_fields():
    patch = UserUpdate(id="abc", email="new@example.com")
    assert patch.changes() == {"email": "new@example.com"}


def test_update_without_fields_has_no_changes():
    assert UserUpdate(id="abc").changes() == {}
