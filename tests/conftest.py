# tests/conftest.py

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from main import create_app
from tasks.router import TaskTransport
from tasks.service import TaskService

from .fakes import FakeTaskRepository


@pytest.fixture()
def repository() -> FakeTaskRepository:
    return FakeTaskRepository()


@pytest.fixture()
def service(repository: FakeTaskRepository) -> TaskService:
    return TaskService(repository)


@pytest.fixture()
def app(service: TaskService, tmp_path):
    """
    API app wired to the in-memory repository; no database, no static site.
    """
    return create_app(transport=TaskTransport(service), static_dir=str(tmp_path / "missing"))


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def bare_root_logger():
    """
    Root logger with no handlers at WARNING; restored afterwards.
    """
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    for h in saved_handlers:
        root.removeHandler(h)
    root.setLevel(logging.WARNING)
    try:
        yield root
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_call(item: pytest.Item) -> None:
    """
    pytest's logging plugin attaches its capture handlers to the root logger
    for the test body; strip them again so `bare_root_logger` stays bare.
    """
    if "bare_root_logger" in getattr(item, "fixturenames", ()):
        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)
