# tools/database_analysis_tool.py

import logging
from typing import Dict, Any, Optional

from database.connectors import BaseConnector, BackendKind, create_connector
from database.metadata_loader import load_metadata_file
from tools.error_manager import NotConnectedError, InvalidRequestError

logger = logging.getLogger(__name__)

class DatabaseAnalysisTool:
    """
    Tool for connecting to a database and running semantic analyses on it
    """

    OPERATIONS = ("connect", "disconnect", "analyze", "list_tables", "get_schema")

    def __init__(self, connector: Optional[BaseConnector] = None):
        self.name = "database_analysis"
        self.description = "Perform data analysis on database tables"
        self.connector = connector

    def execute(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Dispatch one tool call

        Args:
            params: {"operation": ..., "config": ..., "analysis": ..., "tableName": ...}

        Returns:
            Operation result as a plain dict
        """
        operation = params.get("operation")
        if operation not in self.OPERATIONS:
            raise InvalidRequestError(f"Unsupported operation: {operation}")

        if operation == "connect":
            return self.handle_connect(params.get("config") or {})
        if operation == "disconnect":
            return self.handle_disconnect()

        if self.connector is None:
            raise NotConnectedError(operation)

        if operation == "analyze":
            return self.connector.analyze(params.get("analysis") or {}).to_dict()
        if operation == "list_tables":
            tables = self.connector.list_tables()
            return {"tables": tables, "count": len(tables)}

        table_name = params.get("tableName")
        if not table_name:
            raise InvalidRequestError("get_schema requires a tableName")
        return self.connector.get_table_schema(table_name)

    def handle_connect(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Replace any existing connector with a new, connected one"""
        if "type" not in config:
            raise InvalidRequestError("connect requires config.type")

        if self.connector is not None:
            self.connector.disconnect()
            self.connector = None

        connector = create_connector(config["type"], config)
        if config.get("metadataPath"):
            connector.initialize_metadata(load_metadata_file(config["metadataPath"]))

        connector.connect()
        self.connector = connector

        logger.info(f"Database analysis tool connected ({connector.get_database_type()})")
        return {
            "status": "connected",
            "type": connector.get_database_type(),
            "database": connector.config.database
        }

    def handle_disconnect(self) -> Dict[str, Any]:
        if self.connector is None:
            return {"status": "already_disconnected"}

        self.connector.disconnect()
        self.connector = None
        return {"status": "disconnected"}

    def get_tool_spec(self) -> Dict[str, Any]:
        """
        Returns the tool specification (JSON schema of the parameters)
        """
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": {
                    "operation": {
                        "type": "string",
                        "enum": list(self.OPERATIONS),
                        "description": "The operation to perform"
                    },
                    "config": {
                        "type": "object",
                        "properties": {
                            "type": {"type": "string", "enum": [kind.value for kind in BackendKind]},
                            "host": {"type": "string"},
                            "port": {"type": "integer"},
                            "user": {"type": "string"},
                            "password": {"type": "string"},
                            "database": {"type": "string"},
                            "metadataPath": {"type": "string"}
                        },
                        "required": ["type"]
                    },
                    "analysis": {
                        "type": "object",
                        "properties": {
                            "type": {
                                "type": "string",
                                "enum": ["summary", "distribution", "correlation", "custom"]
                            },
                            "businessQuestion": {"type": "string"},
                            "table": {"type": "string"},
                            "columns": {"type": "array", "items": {"type": "string"}},
                            "conditions": {"type": "string"},
                            "groupBy": {"type": "string"},
                            "having": {"type": "string"},
                            "limit": {"type": "integer"},
                            "query": {"type": "string"},
                            "params": {"type": "array"}
                        }
                    },
                    "tableName": {"type": "string"}
                },
                "required": ["operation"]
            }
        }
