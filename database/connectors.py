# database/connectors.py

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from config.settings import DatabaseSettings
from database.metadata_manager import MetadataManager
from state.plan_state import AnalysisRequest, AnalysisResult
from tools.error_manager import (
    NotConnectedError, NotFoundError, InvalidRequestError, ExecutionFailedError, error_manager
)
from tools.sql_tools import AnalysisEngine

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """
    Storage collaborator interface.

    A connector owns the semantic metadata registered for its database and the
    analysis engine that turns requests into SQL. Every query, analysis and
    schema operation requires an open connection.
    """

    def __init__(self, config: Optional[DatabaseSettings] = None, metadata: Optional[MetadataManager] = None):
        self.config = config or DatabaseSettings()
        self.metadata = metadata or MetadataManager()
        self.engine = AnalysisEngine(self.metadata, self)

    def initialize_metadata(self, metadata: Mapping[str, Any]) -> None:
        """Register tables, relationships, concepts and metrics for this database"""
        self.metadata.initialize(metadata)

    @abstractmethod
    def connect(self) -> None:
        ...

    @abstractmethod
    def disconnect(self) -> None:
        ...

    @abstractmethod
    def query(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_table_schema(self, table_name: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def list_tables(self) -> List[str]:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    def get_database_type(self) -> str:
        ...

    def analyze(self, request: Union[AnalysisRequest, Mapping[str, Any]]) -> AnalysisResult:
        return self.engine.analyze(request)

    def _require_connection(self, operation: str) -> None:
        if not self.is_connected():
            raise NotConnectedError(operation)

    def _business_context(self, table_name: str) -> Dict[str, Any]:
        """Registered business metadata for a table, empty when unregistered"""
        if not self.metadata.graph.has_table(table_name):
            return {}
        table = self.metadata.graph.get_table(table_name)
        return {
            "business_name": table.business_name,
            "description": table.description,
            "primary_key": table.primary_key,
            "business_columns": {
                name: {
                    "business_name": column.business_name,
                    "description": column.description,
                    "is_metric": column.is_metric,
                    "aggregations": column.aggregations,
                    "business_rules": column.business_rules,
                }
                for name, column in table.columns.items()
            },
        }


class PostgresConnector(BaseConnector):
    """
    PostgreSQL implementation backed by a thread-safe psycopg2 connection pool
    """

    COLUMNS_QUERY = """
        SELECT column_name AS name,
               data_type AS type,
               is_nullable AS nullable,
               column_default AS default_value
        FROM information_schema.columns
        WHERE table_schema = %s AND table_name = %s
        ORDER BY ordinal_position
    """

    TABLES_QUERY = """
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = %s AND table_type = 'BASE TABLE'
        ORDER BY table_name
    """

    def __init__(self, config: Optional[DatabaseSettings] = None, metadata: Optional[MetadataManager] = None):
        super().__init__(config, metadata)
        self.pool: Optional[pool.ThreadedConnectionPool] = None

    def connect(self) -> None:
        """Open the connection pool and check one connection out to verify it"""
        if self.pool is not None:
            return

        try:
            self.pool = pool.ThreadedConnectionPool(
                self.config.min_connections,
                self.config.max_connections,
                **self.config.connection_kwargs()
            )
            conn = self.pool.getconn()
            self.pool.putconn(conn)
        except psycopg2.Error as e:
            if self.pool is not None:
                self.pool.closeall()
                self.pool = None
            raise ExecutionFailedError(
                f"Failed to connect to PostgreSQL: {e}",
                context={"host": self.config.host, "database": self.config.database}
            ) from e

        logger.info(f"🔌 Connected to PostgreSQL {self.config.host}:{self.config.port}/{self.config.database}")

    def disconnect(self) -> None:
        if self.pool is None:
            return
        self.pool.closeall()
        self.pool = None
        logger.info("Disconnected from PostgreSQL")

    def is_connected(self) -> bool:
        return self.pool is not None

    def query(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """
        Execute a parameterized statement and return rows as dictionaries

        Args:
            query: SQL text with %s placeholders
            params: Positional parameters

        Returns:
            List of row dicts (empty for statements without a result set)
        """
        self._require_connection("query")

        try:
            conn = self.pool.getconn()
        except psycopg2.Error as e:
            raise ExecutionFailedError(f"Could not acquire a database connection: {e}") from e

        broken = False
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                # No params means no %-formatting, so literal % in predicates survives
                cursor.execute(query, list(params) if params else None)
                rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
            conn.commit()
            return rows
        except psycopg2.Error as e:
            broken = not self._rollback(conn)
            raise ExecutionFailedError(
                f"Query execution failed: {e}",
                context={"query": query}
            ) from e
        finally:
            # Dropped connections are discarded instead of going back into the pool
            self.pool.putconn(conn, close=broken or bool(conn.closed))

    def _rollback(self, conn) -> bool:
        """Roll back a failed statement; False when the connection is unusable"""
        if conn.closed:
            return False
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.warning(f"⚠️ Rollback failed, discarding connection: {e}")
            return False
        return True

    def get_table_schema(self, table_name: str) -> Dict[str, Any]:
        """Column definitions from information_schema plus registered business context"""
        self._require_connection("get_table_schema")

        columns = self.query(self.COLUMNS_QUERY, [self.config.schema, table_name])
        if not columns:
            raise NotFoundError(
                "table", table_name,
                error_manager.suggest_alternatives(
                    table_name, [table.table_name for table in self.metadata.graph.tables]
                )
            )

        schema = {"table_name": table_name, "columns": columns}
        schema.update(self._business_context(table_name))
        return schema

    def list_tables(self) -> List[str]:
        self._require_connection("list_tables")
        rows = self.query(self.TABLES_QUERY, [self.config.schema])
        return [row["table_name"] for row in rows]

    def get_database_type(self) -> str:
        return BackendKind.POSTGRESQL.value


class BackendKind(str, Enum):
    """Supported storage backends"""
    POSTGRESQL = "postgresql"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.lower() in ("postgres", "pg"):
            return cls.POSTGRESQL
        return None


CONNECTOR_TYPES = {
    BackendKind.POSTGRESQL: PostgresConnector,
}


def create_connector(
    kind: Union[BackendKind, str],
    config: Union[DatabaseSettings, Mapping[str, Any], None] = None,
    metadata: Optional[MetadataManager] = None
) -> BaseConnector:
    """
    Build a connector for a backend kind

    Args:
        kind: BackendKind or its name ("postgresql")
        config: DatabaseSettings or a dict of overrides on top of the environment
        metadata: Optional pre-populated MetadataManager

    Returns:
        Disconnected connector instance
    """
    if isinstance(kind, BackendKind):
        backend = kind
    else:
        try:
            backend = BackendKind(str(kind).lower())
        except ValueError:
            raise InvalidRequestError(
                f"Unsupported database type: {kind}",
                context={"type": kind}
            )

    if not isinstance(config, DatabaseSettings):
        config = DatabaseSettings.from_dict(config)

    return CONNECTOR_TYPES[backend](config, metadata)
