import psycopg2
import pytest

from config.settings import DatabaseSettings
from database.connectors import BackendKind, PostgresConnector, create_connector
from tools.error_manager import (
    ExecutionFailedError, InvalidRequestError, NotConnectedError, NotFoundError
)


class FakeCursor:

    def __init__(self, conn):
        self.conn = conn
        self.description = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self.conn.executed.append((query, params))
        if self.conn.error is not None:
            raise self.conn.error
        rows = self.conn.results.pop(0) if self.conn.results else []
        self.description = [("col",)] if rows is not None else None
        self._rows = rows or []

    def fetchall(self):
        return self._rows


class FakeConnection:

    def __init__(self):
        self.executed = []
        self.results = []
        self.error = None
        self.rollback_error = None
        self.closed = 0
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, cursor_factory=None):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1
        if self.rollback_error is not None:
            raise self.rollback_error


class FakePool:
    instances = []

    def __init__(self, minconn, maxconn, **kwargs):
        self.minconn = minconn
        self.maxconn = maxconn
        self.kwargs = kwargs
        self.conn = FakeConnection()
        self.checked_out = 0
        self.discarded = []
        self.closed = False
        FakePool.instances.append(self)

    def getconn(self):
        self.checked_out += 1
        return self.conn

    def putconn(self, conn, close=False):
        self.checked_out -= 1
        if close:
            self.discarded.append(conn)

    def closeall(self):
        self.closed = True


class UnreachablePool(FakePool):

    def getconn(self):
        raise psycopg2.OperationalError('could not connect to server: Connection refused')


@pytest.fixture
def fake_pool(monkeypatch):
    FakePool.instances = []
    monkeypatch.setattr("database.connectors.pool.ThreadedConnectionPool", FakePool)
    return FakePool


@pytest.fixture
def pg(fake_pool, northwind):
    settings = DatabaseSettings(
        host="db.internal", port=5433, database="northwind", user="analyst", password="secret",
        schema="sales", min_connections=1, max_connections=4, statement_timeout_ms=0,
    )
    connector = PostgresConnector(settings, northwind)
    connector.connect()
    return connector


def test_connect_opens_pool_with_settings(pg, fake_pool):
    pool = fake_pool.instances[0]

    assert pg.is_connected()
    assert (pool.minconn, pool.maxconn) == (1, 4)
    assert pool.kwargs == {
        "host": "db.internal", "port": 5433, "dbname": "northwind", "user": "analyst", "password": "secret",
    }
    assert pool.checked_out == 0


def test_connect_is_idempotent(pg, fake_pool):
    pg.connect()
    assert len(fake_pool.instances) == 1


def test_statement_timeout_passed_as_option():
    settings = DatabaseSettings(statement_timeout_ms=5000)
    assert settings.connection_kwargs()["options"] == "-c statement_timeout=5000"


def test_connect_failure_is_classified_as_infrastructure(monkeypatch):
    monkeypatch.setattr("database.connectors.pool.ThreadedConnectionPool", UnreachablePool)
    connector = PostgresConnector(DatabaseSettings(host="nowhere"))

    with pytest.raises(ExecutionFailedError) as excinfo:
        connector.connect()

    assert excinfo.value.code == "INF001"
    assert excinfo.value.detail.error_type.retryable is True
    assert not connector.is_connected()


def test_operations_require_connection(fake_pool):
    connector = PostgresConnector(DatabaseSettings())

    for operation in (
        lambda: connector.query("SELECT 1"),
        connector.list_tables,
        lambda: connector.get_table_schema("orders"),
        lambda: connector.analyze({"type": "custom", "query": "SELECT 1"}),
    ):
        with pytest.raises(NotConnectedError):
            operation()

    assert fake_pool.instances == []


def test_query_returns_dict_rows_and_commits(pg):
    conn = pg.pool.conn
    conn.results = [[{"country": "Germany", "total": 11}]]

    rows = pg.query("SELECT country, COUNT(*) AS total FROM customers WHERE country = %s", ["Germany"])

    assert rows == [{"country": "Germany", "total": 11}]
    assert conn.executed[-1][1] == ["Germany"]
    assert conn.commits == 1
    assert pg.pool.checked_out == 0


def test_query_without_params_skips_formatting(pg):
    pg.query("SELECT * FROM products WHERE product_name LIKE 'Ch%'")

    assert pg.pool.conn.executed[-1] == ("SELECT * FROM products WHERE product_name LIKE 'Ch%'", None)


def test_statement_without_result_set_returns_empty_list(pg):
    pg.pool.conn.results = [None]
    assert pg.query("UPDATE products SET units_in_stock = 0 WHERE product_id = %s", [1]) == []


def test_query_failure_rolls_back_and_classifies(pg):
    conn = pg.pool.conn
    conn.error = psycopg2.ProgrammingError('relation "ordrs" does not exist')

    with pytest.raises(ExecutionFailedError) as excinfo:
        pg.query("SELECT * FROM ordrs")

    assert excinfo.value.code == "SCH001"
    assert excinfo.value.detail.extracted_entities == {"table_name": "ordrs"}
    assert excinfo.value.detail.context["query"] == "SELECT * FROM ordrs"
    assert conn.rollbacks == 1
    assert pg.pool.checked_out == 0
    assert pg.pool.discarded == []


def test_dropped_connection_is_wrapped_and_discarded(pg):
    conn = pg.pool.conn
    conn.error = psycopg2.OperationalError("server closed the connection unexpectedly")
    conn.rollback_error = psycopg2.InterfaceError("connection already closed")

    with pytest.raises(ExecutionFailedError) as excinfo:
        pg.list_tables()

    assert "server closed the connection unexpectedly" in str(excinfo.value)
    assert excinfo.value.code == "INF001"
    assert pg.pool.discarded == [conn]
    assert pg.pool.checked_out == 0


def test_closed_connection_skips_rollback(pg):
    conn = pg.pool.conn
    conn.error = psycopg2.OperationalError("server closed the connection unexpectedly")
    conn.closed = 2

    with pytest.raises(ExecutionFailedError):
        pg.query("SELECT 1")

    assert conn.rollbacks == 0
    assert pg.pool.discarded == [conn]


def test_list_tables(pg):
    pg.pool.conn.results = [[{"table_name": "customers"}, {"table_name": "orders"}]]

    assert pg.list_tables() == ["customers", "orders"]
    assert pg.pool.conn.executed[-1][1] == ["sales"]


def test_get_table_schema_merges_business_context(pg):
    pg.pool.conn.results = [[
        {"name": "order_id", "type": "smallint", "nullable": "NO", "default_value": None},
        {"name": "freight", "type": "real", "nullable": "YES", "default_value": None},
    ]]

    schema = pg.get_table_schema("orders")

    assert schema["table_name"] == "orders"
    assert [column["name"] for column in schema["columns"]] == ["order_id", "freight"]
    assert schema["business_name"] == "Orders"
    assert schema["primary_key"] == "order_id"
    assert schema["business_columns"]["freight"]["is_metric"] is True
    assert pg.pool.conn.executed[-1][1] == ["sales", "orders"]


def test_get_table_schema_for_unregistered_table_has_no_business_context(pg):
    pg.pool.conn.results = [[{"name": "id", "type": "integer", "nullable": "NO", "default_value": None}]]

    schema = pg.get_table_schema("audit_log")

    assert schema == {"table_name": "audit_log", "columns": schema["columns"]}


def test_get_table_schema_missing_table(pg):
    pg.pool.conn.results = [[]]

    with pytest.raises(NotFoundError) as excinfo:
        pg.get_table_schema("order")

    assert excinfo.value.suggestions == ["orders"]


def test_disconnect_closes_pool(pg):
    pool = pg.pool
    pg.disconnect()
    pg.disconnect()

    assert pool.closed
    assert not pg.is_connected()


class TestCreateConnector:

    def test_aliases_resolve_to_postgres(self):
        for kind in ("postgresql", "PostgreSQL", "postgres", "pg", BackendKind.POSTGRESQL):
            connector = create_connector(kind)
            assert isinstance(connector, PostgresConnector)
            assert connector.get_database_type() == "postgresql"
            assert not connector.is_connected()

    def test_dict_config_overrides_known_fields(self):
        connector = create_connector("postgresql", {
            "type": "postgresql", "host": "warehouse", "port": 6543, "database": None,
        })

        assert connector.config.host == "warehouse"
        assert connector.config.port == 6543
        assert connector.config.database == DatabaseSettings().database

    def test_unknown_backend_rejected(self):
        with pytest.raises(InvalidRequestError, match="Unsupported database type: oracle"):
            create_connector("oracle")
