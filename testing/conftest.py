import pytest

from database.metadata_manager import MetadataManager
from database.northwind_metadata import NORTHWIND_METADATA
from testing.fakes import RecordingConnector


@pytest.fixture
def northwind():
    manager = MetadataManager()
    manager.initialize(NORTHWIND_METADATA)
    return manager


@pytest.fixture
def connector(northwind):
    """Disconnected recording connector with Northwind metadata"""
    return RecordingConnector(metadata=northwind, tables=["customers", "orders"])


@pytest.fixture
def connected(connector):
    connector.connect()
    return connector
