# state/plan_state.py

from typing import Dict, List, Any, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from enum import Enum

from state.metadata_state import Relationship

class AnalysisType(str, Enum):
    """Direct analysis modes understood by the analysis engine"""
    SUMMARY = "summary"
    DISTRIBUTION = "distribution"
    CORRELATION = "correlation"
    CUSTOM = "custom"

# Result type reported for the business-question path
BUSINESS_ANALYSIS = "business_analysis"

class QueryPlan(BaseModel):
    """Tables, joins, metrics and filters needed to answer a business question"""

    question: str = Field(default="", description="Business question the plan was built from")
    concepts: List[str] = Field(default_factory=list, description="Matched business concept names")
    metrics: List[str] = Field(default_factory=list, description="Matched metric names")
    tables: List[str] = Field(default_factory=list, description="Required tables, in accumulation order")
    joins: List[Relationship] = Field(default_factory=list, description="Join edges, duplicates kept")
    filters: List[str] = Field(default_factory=list, description="Raw filter predicates from concepts")
    aggregations: List[str] = Field(default_factory=list)

    # Consecutive table pairs for which no join path exists
    unresolved_pairs: List[Tuple[str, str]] = Field(default_factory=list)

    def add_table(self, table_name: str) -> None:
        """Add a table once, keeping first-seen order"""
        if table_name not in self.tables:
            self.tables.append(table_name)

    @property
    def main_table(self) -> Optional[str]:
        return self.tables[0] if self.tables else None

    @property
    def is_empty(self) -> bool:
        return not self.tables

    def get_plan_summary(self) -> Dict[str, Any]:
        """Compact view used in logs and API responses"""
        return {
            "concepts": self.concepts,
            "metrics": self.metrics,
            "tables": self.tables,
            "joins": [join.name for join in self.joins],
            "filters": self.filters,
            "unresolved_pairs": [list(pair) for pair in self.unresolved_pairs],
        }

class AnalysisRequest(BaseModel):
    """Explicit analysis request or business question"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Optional[str] = Field(default=None, description="summary, distribution, correlation or custom")
    business_question: Optional[str] = None
    table: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    conditions: Optional[str] = Field(default=None, description="Raw WHERE predicate")
    group_by: Optional[str] = None
    having: Optional[str] = None
    limit: Optional[int] = None
    query: Optional[str] = Field(default=None, description="Full SQL text for custom analysis")
    params: List[Any] = Field(default_factory=list, description="Positional parameters for custom analysis")

class AnalysisMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    business_question: Optional[str] = None
    table: Optional[str] = None
    columns: Optional[List[str]] = None
    conditions: Optional[str] = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

class AnalysisResult(BaseModel):
    """Result envelope returned by analyze()"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str
    results: List[Dict[str, Any]] = Field(default_factory=list)
    query: Optional[str] = Field(default=None, description="SQL text that was executed")
    metadata: AnalysisMetadata = Field(default_factory=AnalysisMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
