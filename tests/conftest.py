"""Root conftest: markers and fixtures over the fake Spanner database."""

from __future__ import annotations

import os

import pytest
from fakes import FakeClient, FakeDatabase

from spandb.client import SpannerClient
from spandb.connection import Connection


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "spanner: requires a Cloud Spanner instance or the emulator"
    )


def pytest_collection_modifyitems(config, items):
    if os.environ.get("SPANDB_TEST_SPANNER"):
        return

    skip_spanner = pytest.mark.skip(reason="Spanner not available (set SPANDB_TEST_SPANNER=1)")
    for item in items:
        if "spanner" in item.keywords:
            item.add_marker(skip_spanner)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def conn(fake_db, fake_client):
    """Connection over the fake database, closed after each test."""
    connection = Connection(SpannerClient(fake_db, client=fake_client, ddl_timeout=30.0))
    yield connection
    connection.close()
