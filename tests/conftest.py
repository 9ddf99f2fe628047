import pytest

from fakes import CountingStore, FakeClock, FakeIdProvider
from taskboard.repositories.task_repo import TaskRepository
from taskboard.repositories.user_repo import UserRepository
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return FakeIdProvider()


@pytest.fixture
def store():
    return CountingStore()


@pytest.fixture
def task_repo(store, clock, ids):
    return TaskRepository(store, clock, ids)


@pytest.fixture
def user_repo(store, clock, ids):
    return UserRepository(store, clock, ids)


@pytest.fixture
def user_service(user_repo, clock):
    return UserService(user_repo, clock)


@pytest.fixture
def task_service(task_repo, user_repo, ids, clock):
    return TaskService(task_repo, user_repo, ids, clock)


@pytest.fixture
def alice(user_service):
    return user_service.create_user({"username": "alice", "email": "alice@example.com"})


@pytest.fixture
def bob(user_service):
    return user_service.create_user({"username": "bob", "email": "bob@example.com"})
