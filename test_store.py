from types import SimpleNamespace

import pytest

from auth_utils import CredentialStore, make_password_context
from errors import DuplicateEmail, NotFound
from models import User
from schemas import TaskUpdate
from task_models import TaskDB, TaskStatus
from task_service import TaskService
from task_store import TaskStore
from visibility import Eq, WriteOperation, write_scope


@pytest.fixture()
def users(db):
    return CredentialStore(db, make_password_context(4))


@pytest.fixture()
def owner_and_helper(users):
    return users.register("Owner", "owner@example.com", "pw"), users.register("Helper", "helper@example.com", "pw")


# --- Credential Store: parallel signup ---

def test_unique_index_race_reported_as_duplicate(client, users, monkeypatch):
    # Another request inserts the same email after our lookup said it was free
    other = client.app.state.session_factory()
    try:
        other.add(User(name="First", email="race@example.com", password_hash="x"))
        other.commit()
    finally:
        other.close()

    monkeypatch.setattr(users, "find_by_email", lambda email: None)
    with pytest.raises(DuplicateEmail):
        users.register("Second", "Race@Example.com", "pw")

    # Session is usable again after the rollback
    assert users.db.query(User).filter(User.email == "race@example.com").count() == 1


# --- Task Store: write guard ---

def test_update_one_with_unsatisfied_scope_changes_nothing(db, owner_and_helper):
    owner, helper = owner_and_helper
    store = TaskStore(db)
    task = store.insert(TaskDB(owner_id=owner.id, title="guarded"))

    result = store.update_one(task.id, {"title": "hijacked"}, where=write_scope(helper.id, WriteOperation.update))
    assert result is None

    db.expire_all()
    assert store.find_one(Eq("id", task.id)).title == "guarded"


def test_update_one_within_scope(db, owner_and_helper):
    owner, helper = owner_and_helper
    store = TaskStore(db)
    task = store.insert(TaskDB(owner_id=owner.id, assigned_to_id=helper.id, title="shared"))

    result = store.update_one(task.id, {"status": TaskStatus.done}, where=write_scope(helper.id, WriteOperation.update))
    assert result is not None
    assert result.status == TaskStatus.done
    assert result.title == "shared"


def test_delete_one_scope_requires_owner(db, owner_and_helper):
    owner, helper = owner_and_helper
    store = TaskStore(db)
    task = store.insert(TaskDB(owner_id=owner.id, assigned_to_id=helper.id, title="keep"))

    assert not store.delete_one(Eq("id", task.id) & write_scope(helper.id, WriteOperation.delete))
    assert store.delete_one(Eq("id", task.id) & write_scope(owner.id, WriteOperation.delete))
    assert store.find_one(Eq("id", task.id)) is None


def test_service_update_not_found_when_assignment_removed_meanwhile(db, owner_and_helper, monkeypatch):
    owner, helper = owner_and_helper
    store = TaskStore(db)
    task = store.insert(TaskDB(owner_id=owner.id, assigned_to_id=helper.id, title="moving target"))
    stale = SimpleNamespace(id=task.id, owner_id=owner.id, assigned_to_id=helper.id)

    # Owner unassigns the helper between the helper's read and write
    store.update_one(task.id, {"assigned_to_id": None})
    monkeypatch.setattr(store, "find_one", lambda where: stale)

    with pytest.raises(NotFound):
        TaskService(store).update(helper.id, task.id, TaskUpdate(status="done"))

    monkeypatch.undo()
    db.expire_all()
    assert store.find_one(Eq("id", task.id)).status == TaskStatus.todo
