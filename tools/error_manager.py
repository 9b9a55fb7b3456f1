# tools/error_manager.py

import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Tuple

from config.error_config import ERROR_TYPES, DEFAULT_EXECUTION_ERROR, ErrorCategory, ErrorType

logger = logging.getLogger(__name__)


@dataclass
class ErrorDetail:
    """Classified error: taxonomy entry plus the raw message and what was pulled out of it"""

    error_type: ErrorType
    raw_error: str
    context: Dict[str, Any] = field(default_factory=dict)
    extracted_entities: Dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Plain form for logs and API error bodies"""
        return {
            "error_code": self.error_type.code,
            "category": self.error_type.category.value,
            "severity": self.error_type.severity.value,
            "retryable": self.error_type.retryable,
            "raw_error": self.raw_error,
            "context": self.context,
            "extracted_entities": self.extracted_entities,
            "timestamp": self.timestamp.isoformat(),
        }

    def get_user_message(self) -> str:
        # Placeholders without an extracted value are left as written
        message = self.error_type.user_message_template
        for name, value in self.extracted_entities.items():
            message = message.replace("{" + name + "}", str(value))
        return message


class SemanticLayerError(Exception):
    """Base class for every error raised by the semantic layer"""

    error_key = DEFAULT_EXECUTION_ERROR

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] = None,
        detail: Optional[ErrorDetail] = None,
        extracted_entities: Dict[str, str] = None
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail or ErrorDetail(
            ERROR_TYPES[self.error_key],
            message,
            context=context or {},
            extracted_entities=extracted_entities or {},
        )

    @property
    def code(self) -> str:
        return self.detail.error_type.code


class NotFoundError(SemanticLayerError):
    """Lookup of an unregistered table, relationship, concept or metric"""

    error_key = "metadata_not_found"

    def __init__(self, kind: str, name: str, suggestions: List[str] = None):
        self.kind = kind
        self.name = name
        self.suggestions = suggestions or []

        message = f"{kind.capitalize()} '{name}' is not registered"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"

        super().__init__(
            message,
            context={"kind": kind},
            extracted_entities={"name": name}
        )


class NotConnectedError(SemanticLayerError):
    """Operation attempted while the connector is disconnected"""

    error_key = "not_connected"

    def __init__(self, operation: str = "operation"):
        self.operation = operation
        super().__init__(
            f"Database connection not initialized: cannot run {operation}",
            context={"operation": operation}
        )


class InvalidRequestError(SemanticLayerError):
    """Malformed analysis request, rejected before any I/O"""

    error_key = "invalid_request"


class ExecutionFailedError(SemanticLayerError):
    """Underlying storage failure, wrapping the original message"""

    def __init__(self, message: str, context: Dict[str, Any] = None):
        super().__init__(message, detail=error_manager.classify_error(message, context))


class ErrorManager:
    """Classifies storage failures and keeps per-process error statistics"""

    def __init__(self):
        self.error_log: List[ErrorDetail] = []
        self.session_error_counts: Counter = Counter()

    def classify_error(self, error_message: str, error_context: Dict[str, Any] = None) -> ErrorDetail:
        """
        Map a raw storage error message onto the error taxonomy

        Args:
            error_message: Message reported by the driver
            error_context: Query, table or connection details to keep with it

        Returns:
            ErrorDetail; unmatched messages fall back to the generic execution error
        """
        error_type, entities = self._match_error_type(error_message)
        detail = ErrorDetail(
            error_type,
            error_message,
            context=dict(error_context or {}),
            extracted_entities=entities,
        )
        self._record(detail)
        return detail

    def _match_error_type(self, error_message: str) -> Tuple[ErrorType, Dict[str, str]]:
        # First pattern in taxonomy order wins
        for candidate in ERROR_TYPES.values():
            if not candidate.technical_pattern:
                continue
            found = re.search(candidate.technical_pattern, error_message, re.IGNORECASE)
            if found:
                entities = {k: v for k, v in found.groupdict().items() if v is not None}
                return candidate, entities
        return ERROR_TYPES[DEFAULT_EXECUTION_ERROR], {}

    def suggest_alternatives(self, wrong_name: str, available_options: List[str]) -> List[str]:
        """Close matches for a misspelled metadata name"""
        if not wrong_name or not available_options:
            return []
        return get_close_matches(wrong_name, available_options, n=3, cutoff=0.6)

    def _record(self, detail: ErrorDetail) -> None:
        self.error_log.append(detail)
        self.session_error_counts[detail.error_type.code] += 1
        logger.error(f"❌ Classified storage error: {json.dumps(detail.to_dict(), default=str)}")

    def get_error_stats(self) -> Dict[str, Any]:
        """Counts of classified errors for this process"""
        categories = Counter(detail.error_type.category.value for detail in self.error_log)
        severities = Counter(detail.error_type.severity.value for detail in self.error_log)

        return {
            "total_errors": len(self.error_log),
            "by_category": dict(categories),
            "by_severity": dict(severities),
            "by_code": dict(self.session_error_counts),
            "retryable": sum(1 for detail in self.error_log if detail.error_type.retryable),
            "infrastructure": categories[ErrorCategory.INFRASTRUCTURE.value],
        }

# Global error manager instance
error_manager = ErrorManager()
