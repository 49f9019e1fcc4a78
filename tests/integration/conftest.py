"""Fixtures for tests against a real Spanner database or the emulator.

The target comes from SPANNER_TEST_PROJECT, SPANNER_TEST_INSTANCE and
SPANNER_TEST_DBID (defaults: test-project, test-instance, gotest). The
database must already exist and start without the tables used here.
"""

from __future__ import annotations

import os

import pytest

import spandb


@pytest.fixture(scope="session")
def dsn() -> str:
    project = os.environ.get("SPANNER_TEST_PROJECT", "test-project")
    instance = os.environ.get("SPANNER_TEST_INSTANCE", "test-instance")
    database = os.environ.get("SPANNER_TEST_DBID", "gotest")
    return f"projects/{project}/instances/{instance}/databases/{database}"


@pytest.fixture
def db(dsn):
    conn = spandb.connect(dsn)
    yield conn
    conn.close()
