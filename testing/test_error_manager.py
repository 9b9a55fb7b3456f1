import pytest

from tools.error_manager import (
    ErrorManager, ExecutionFailedError, InvalidRequestError, NotConnectedError, NotFoundError,
    SemanticLayerError
)


@pytest.fixture
def manager():
    return ErrorManager()


@pytest.mark.parametrize("message, code, entities", [
    ('relation "public.ordrs" does not exist', "SCH001", {"table_name": "public.ordrs"}),
    ('column "frieght" does not exist', "SCH002", {"column_name": "frieght"}),
    ('syntax error at or near "FORM"', "SYN001", {}),
    ("could not connect to server: Connection refused", "INF001", {}),
    ('duplicate key value violates unique constraint "orders_pkey"', "DAT001", {}),
    ("division by zero", "EXE001", {}),
])
def test_classify_storage_messages(manager, message, code, entities):
    detail = manager.classify_error(message, {"query": "SELECT 1"})

    assert detail.error_type.code == code
    assert detail.extracted_entities == entities
    assert detail.context == {"query": "SELECT 1"}


def test_user_message_fills_extracted_entities(manager):
    detail = manager.classify_error('column "frieght" does not exist')
    assert detail.get_user_message() == "The column 'frieght' does not exist."


def test_error_stats(manager):
    manager.classify_error("could not connect to server")
    manager.classify_error("server closed the connection unexpectedly")
    manager.classify_error('syntax error at or near ")"')

    stats = manager.get_error_stats()
    assert stats["total_errors"] == 3
    assert stats["by_code"] == {"INF001": 2, "SYN001": 1}
    assert stats["by_category"] == {"infrastructure": 2, "syntax": 1}
    assert stats["by_severity"] == {"critical": 2, "high": 1}
    assert stats["retryable"] == 2
    assert stats["infrastructure"] == 2


def test_suggest_alternatives(manager):
    options = ["customers", "orders", "order_details"]
    assert manager.suggest_alternatives("custmers", options) == ["customers"]
    assert manager.suggest_alternatives("zzz", options) == []
    assert manager.suggest_alternatives("", options) == []


def test_error_families_share_base_and_codes():
    errors = [
        NotFoundError("metric", "revenu", ["revenue"]),
        NotConnectedError("list_tables"),
        InvalidRequestError("bad request"),
        ExecutionFailedError("boom"),
    ]

    assert all(isinstance(error, SemanticLayerError) for error in errors)
    assert [error.code for error in errors] == ["MET001", "CON001", "REQ001", "EXE001"]


def test_not_found_message():
    error = NotFoundError("metric", "revenu", ["revenue"])

    assert str(error) == "Metric 'revenu' is not registered. Did you mean: revenue?"
    assert error.detail.get_user_message() == "'revenu' is not registered in the semantic metadata."
    assert error.detail.context == {"kind": "metric"}


def test_not_connected_message():
    error = NotConnectedError("list_tables")
    assert str(error) == "Database connection not initialized: cannot run list_tables"
    assert error.operation == "list_tables"
