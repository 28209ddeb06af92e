import dataclasses

from miniblog.apimodels import CreatePostRequest, CreateUserRequest, HealthzResponse


def test_create_user_default_sets_nickname():
    password = "password"
    request = CreateUserRequest(username="alice", password=password, email="alice@example.com")
    request.default()
    assert request.nickname == "你好世界"
    assert request.username == "alice"
    assert request.email == "alice@example.com"


def test_create_user_default_keeps_given_nickname():
    request = CreateUserRequest(username="bob", nickname="bobby")
    request.default()
    assert request.nickname == "bobby"


def test_create_user_default_keeps_empty_nickname():
    request = CreateUserRequest(username="carol", nickname="")
    request.default()
    assert request.nickname == ""


def test_create_user_default_is_idempotent():
    request = CreateUserRequest(username="dave")
    request.default()
    once = dataclasses.replace(request)
    request.default()
    assert request == once


def test_create_post_default_changes_nothing():
    request = CreatePostRequest(title="Hello", content="World")
    before = dataclasses.replace(request)
    request.default()
    assert request == before


def test_healthz_default_changes_nothing():
    response = HealthzResponse(status=1, timestamp="2024-01-01 00:00:00", message="ok")
    before = dataclasses.replace(response)
    response.default()
    assert response == before