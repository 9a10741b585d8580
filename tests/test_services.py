import uuid

import pytest

from todo_api.errors import InvalidUUID, PermissionDenied, TodoNotFound, ValidationError
from todo_api.services import TodoService


@pytest.fixture
def service(repo, ticking_clock):
    return TodoService(repo, clock=ticking_clock)


@pytest.fixture
def alice():
    return uuid.uuid4()


@pytest.fixture
def bob():
    return uuid.uuid4()


class TestCreateAndList:
    def test_create_todo(self, service, alice):
        todo = service.create_todo(alice, "  Buy milk ", "2%")
        assert todo.title == "Buy milk"
        assert todo.description == "2%"
        assert todo.completed is False
        assert todo.user_id == alice
        assert todo.created_at == todo.updated_at

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title_rejected(self, service, alice, title):
        with pytest.raises(ValidationError):
            service.create_todo(alice, title, "x")
        assert service.list_user_todos(alice) == []

    def test_list_empty_user(self, service, alice):
        assert service.list_user_todos(alice) == []

    def test_list_only_own(self, service, alice, bob):
        service.create_todo(alice, "a1")
        service.create_todo(bob, "b1")
        service.create_todo(alice, "a2")
        assert [t.title for t in service.list_user_todos(alice)] == ["a2", "a1"]


class TestOwnership:
    def test_get_other_users_todo(self, service, alice, bob):
        todo = service.create_todo(bob, "secret")
        with pytest.raises(PermissionDenied):
            service.get_todo(todo.id, alice)

    def test_update_other_users_todo_does_not_mutate(self, service, repo, alice, bob):
        todo = service.create_todo(bob, "secret", "keep")
        with pytest.raises(PermissionDenied):
            service.update_todo(todo.id, alice, "hijacked", "")
        stored = repo.get(todo.id)
        assert stored.title == "secret"
        assert stored.description == "keep"
        assert stored.updated_at == todo.updated_at

    def test_complete_other_users_todo(self, service, repo, alice, bob):
        todo = service.create_todo(bob, "secret")
        with pytest.raises(PermissionDenied):
            service.complete_todo(todo.id, alice)
        assert repo.get(todo.id).completed is False

    def test_delete_other_users_todo(self, service, repo, alice, bob):
        todo = service.create_todo(bob, "secret")
        with pytest.raises(PermissionDenied):
            service.delete_todo(todo.id, alice)
        assert repo.get(todo.id).id == todo.id


class TestMutations:
    def test_update_todo(self, service, alice):
        todo = service.create_todo(alice, "old", "d")
        updated = service.update_todo(str(todo.id), alice, "new", "details")
        assert updated.title == "new"
        assert updated.description == "details"
        assert updated.updated_at > todo.updated_at
        assert service.get_todo(todo.id, alice).title == "new"

    def test_update_blank_title(self, service, alice):
        todo = service.create_todo(alice, "keep")
        with pytest.raises(ValidationError):
            service.update_todo(todo.id, alice, " ", "")
        assert service.get_todo(todo.id, alice).title == "keep"

    def test_complete_and_incomplete(self, service, alice):
        todo = service.create_todo(alice, "flip")
        done = service.complete_todo(todo.id, alice)
        assert done.completed is True
        assert done.updated_at > todo.updated_at

        reopened = service.incomplete_todo(todo.id, alice)
        assert reopened.completed is False
        assert reopened.updated_at > done.updated_at

    def test_delete_twice(self, service, alice):
        todo = service.create_todo(alice, "gone")
        service.delete_todo(todo.id, alice)
        with pytest.raises(TodoNotFound):
            service.delete_todo(todo.id, alice)

    def test_missing_todo_propagates_not_found(self, service, alice):
        with pytest.raises(TodoNotFound):
            service.get_todo(uuid.uuid4(), alice)

    def test_malformed_id(self, service, alice):
        with pytest.raises(InvalidUUID):
            service.get_todo("not-a-uuid", alice)
