"""
Shared pytest configuration and fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

# Add project root to sys.path to enable importing project modules
# This allows tests to import from 'core', 'sql', 'contexts', etc. without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests - isolated function-level tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interactions")
    config.addinivalue_line("markers", "smoke: Smoke tests - basic functionality checks")
    config.addinivalue_line("markers", "edge_case: Edge case tests - boundary conditions")
    config.addinivalue_line("markers", "regression: Regression tests - previously fixed bugs")


CHINOOK_DDL = [
    """CREATE TABLE Artist (
        ArtistId INTEGER PRIMARY KEY AUTOINCREMENT,
        Name TEXT
    )""",
    """CREATE TABLE Album (
        AlbumId INTEGER PRIMARY KEY AUTOINCREMENT,
        Title TEXT NOT NULL,
        ArtistId INTEGER NOT NULL
    )""",
    """CREATE TABLE Customer (
        CustomerId INTEGER PRIMARY KEY AUTOINCREMENT,
        FirstName TEXT NOT NULL,
        LastName TEXT NOT NULL,
        Company TEXT,
        Country TEXT
    )""",
]

CHINOOK_ROWS = [
    "INSERT INTO Artist (ArtistId, Name) VALUES (1, 'AC/DC'), (2, 'Accept'), (3, 'Aerosmith')",
    "INSERT INTO Album (AlbumId, Title, ArtistId) VALUES "
    "(1, 'For Those About To Rock We Salute You', 1), (2, 'Balls to the Wall', 2), "
    "(3, 'Restless and Wild', 2), (4, 'Let There Be Rock', 1)",
    "INSERT INTO Customer (CustomerId, FirstName, LastName, Company, Country) VALUES "
    "(1, 'Luis', 'Goncalves', 'Embraer', 'Brazil'), "
    "(2, 'Leonie', 'Kohler', NULL, 'Germany'), "
    "(3, 'Francois', 'Tremblay', NULL, 'Canada'), "
    "(4, 'Frank', 'Harris', 'Google Inc.', 'USA'), "
    "(5, 'Frank', 'Ralston', NULL, 'USA')",
]


@pytest.fixture
def sqlite_engine():
    """
    In-memory SQLite engine seeded with a slice of the Chinook schema.

    StaticPool keeps one connection alive so every checkout sees the same
    in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    with engine.begin() as conn:
        for statement in CHINOOK_DDL + CHINOOK_ROWS:
            conn.execute(text(statement))
    yield engine
    engine.dispose()
