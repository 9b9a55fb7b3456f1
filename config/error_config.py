# config/error_config.py

from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass

class ErrorSeverity(str, Enum):
    """Error severity levels"""
    CRITICAL = "critical"  # Complete failure, no recovery
    HIGH = "high"          # Request cannot be served as issued
    MEDIUM = "medium"      # Caller can fix the request and resend
    LOW = "low"            # Warning, can proceed

class ErrorCategory(str, Enum):
    """Main error categories"""
    METADATA = "metadata"
    CONNECTION = "connection"
    REQUEST = "request"
    SYNTAX = "syntax"
    SCHEMA = "schema"
    DATA = "data"
    INFRASTRUCTURE = "infrastructure"
    EXECUTION = "execution"

@dataclass
class ErrorType:
    """Definition of an error type"""
    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    retryable: bool
    user_message_template: str
    technical_pattern: Optional[str] = None  # Named groups become user message placeholders

# Complete error type definitions
ERROR_TYPES: Dict[str, ErrorType] = {

    # ========== METADATA ERRORS ==========
    "metadata_not_found": ErrorType(
        code="MET001",
        category=ErrorCategory.METADATA,
        severity=ErrorSeverity.HIGH,
        retryable=False,
        user_message_template="'{name}' is not registered in the semantic metadata.",
    ),

    # ========== CONNECTION ERRORS ==========
    "not_connected": ErrorType(
        code="CON001",
        category=ErrorCategory.CONNECTION,
        severity=ErrorSeverity.HIGH,
        retryable=False,
        user_message_template="The database connection has not been established. Connect before running this operation.",
    ),

    # ========== REQUEST ERRORS ==========
    "invalid_request": ErrorType(
        code="REQ001",
        category=ErrorCategory.REQUEST,
        severity=ErrorSeverity.MEDIUM,
        retryable=False,
        user_message_template="The analysis request is malformed and was rejected before execution.",
    ),

    # ========== EXECUTION ERRORS (classified from storage messages) ==========
    "schema_table_not_found": ErrorType(
        code="SCH001",
        category=ErrorCategory.SCHEMA,
        severity=ErrorSeverity.HIGH,
        retryable=False,
        user_message_template="The table '{table_name}' does not exist in the database.",
        technical_pattern=r"(?:relation|table) ['\"]?(?P<table_name>[\w\.]+)['\"]? does not exist"
    ),

    "schema_column_not_found": ErrorType(
        code="SCH002",
        category=ErrorCategory.SCHEMA,
        severity=ErrorSeverity.HIGH,
        retryable=False,
        user_message_template="The column '{column_name}' does not exist.",
        technical_pattern=r"column ['\"]?(?P<column_name>[\w\.]+)['\"]? does not exist"
    ),

    "syntax_error": ErrorType(
        code="SYN001",
        category=ErrorCategory.SYNTAX,
        severity=ErrorSeverity.HIGH,
        retryable=False,
        user_message_template="The generated query is not valid SQL. Check registered calculations and filters.",
        technical_pattern=r"syntax error"
    ),

    "connection_refused": ErrorType(
        code="INF001",
        category=ErrorCategory.INFRASTRUCTURE,
        severity=ErrorSeverity.CRITICAL,
        retryable=True,
        user_message_template="The database server could not be reached.",
        technical_pattern=r"(connection refused|could not connect|could not translate host name|server closed the connection)"
    ),

    "constraint_violation": ErrorType(
        code="DAT001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.MEDIUM,
        retryable=False,
        user_message_template="The statement violates a database constraint.",
        technical_pattern=r"violates .*constraint"
    ),

    "execution_failed": ErrorType(
        code="EXE001",
        category=ErrorCategory.EXECUTION,
        severity=ErrorSeverity.HIGH,
        retryable=False,
        user_message_template="The query failed while executing against the database.",
    ),
}

# Fallback used when no technical pattern matches a storage error
DEFAULT_EXECUTION_ERROR = "execution_failed"
