"""Shared fixtures: a MongoService backed by MagicMock driver objects."""

from unittest.mock import MagicMock

import pytest

from core.mongo_service import MongoService


@pytest.fixture
def mock_db():
    """The pymongo Database mock.  ``mock_db[name]`` is always ``collection``."""
    return MagicMock()


@pytest.fixture
def collection(mock_db):
    """The pymongo Collection mock returned for every collection name."""
    return mock_db.__getitem__.return_value


@pytest.fixture
def mock_client(mock_db):
    client = MagicMock()
    client.__getitem__.return_value = mock_db
    return client


@pytest.fixture
def service(mock_client):
    """A connected MongoService using the mocked client."""
    svc = MongoService("mongodb://localhost:27017", "test", client=mock_client)
    svc.connect()
    return svc
