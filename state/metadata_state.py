# state/metadata_state.py

from typing import Dict, List, Any, Optional, Union
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class RelationshipType(str, Enum):
    """Cardinality of a table-to-table link"""
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"
    MANY_TO_MANY = "MANY_TO_MANY"


class MetricType(str, Enum):
    """How a metric's calculation is rendered into SQL"""
    SIMPLE = "SIMPLE"
    CALCULATED = "CALCULATED"
    DERIVED = "DERIVED"


class MetadataModel(BaseModel):
    """Base for registration descriptors: accepts camelCase or snake_case keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Column(MetadataModel):
    """Column descriptor with business context"""

    name: str
    business_name: Optional[str] = Field(default=None, description="Defaults to the column name")
    description: str = ""
    data_type: Optional[str] = None
    is_metric: bool = False
    aggregations: List[str] = Field(default_factory=list, description="Allowed aggregations, e.g. SUM, AVG")
    business_rules: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def default_business_name(self) -> "Column":
        if not self.business_name:
            self.business_name = self.name
        return self


class Table(MetadataModel):
    """Table descriptor registered in the metadata graph"""

    table_name: str = Field(..., description="Unique registry key")
    business_name: str = ""
    description: str = ""
    columns: Dict[str, Column] = Field(default_factory=dict)
    primary_key: Optional[Union[str, List[str]]] = None
    timestamps: bool = True

    @field_validator("columns", mode="before")
    @classmethod
    def key_columns_by_name(cls, value: Any) -> Any:
        # Registration input is a list; the descriptor keys it by column name
        if isinstance(value, (list, tuple)):
            keyed = {}
            for column in value:
                name = column.name if isinstance(column, Column) else column["name"]
                keyed[name] = column
            return keyed
        return value


class Relationship(MetadataModel):
    """Directed link between two tables, traversed in both directions"""

    name: str
    source_table: str
    target_table: str
    type: RelationshipType
    source_key: str
    target_key: str
    join_table: Optional[str] = Field(default=None, description="Bridge table for MANY_TO_MANY links")
    business_description: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    def other_end(self, table_name: str) -> str:
        """Table on the opposite side of this edge"""
        return self.target_table if table_name == self.source_table else self.source_table


class TableRole(MetadataModel):
    """A table taking part in a business concept"""

    table_name: str = Field(..., alias="name")
    role: str = ""
    conditions: List[str] = Field(default_factory=list, description="Raw SQL filter predicates")


class ConceptMetric(MetadataModel):
    """Metric reference carried by a concept (copied at registration)"""

    name: str
    description: str = ""
    calculation: Optional[str] = None
    table: Optional[str] = None
    column: Optional[str] = None
    aggregation: Optional[str] = None
    filters: List[str] = Field(default_factory=list)


class BusinessConcept(MetadataModel):
    """Named mapping from a domain term to tables and metrics"""

    name: str
    description: str = ""
    tables: List[TableRole] = Field(default_factory=list)
    metrics: List[ConceptMetric] = Field(default_factory=list)
    example_questions: List[str] = Field(default_factory=list, alias="commonQueries")

    @property
    def table_names(self) -> List[str]:
        return [role.table_name for role in self.tables]


class MetricDependency(MetadataModel):
    """Column a metric reads from"""

    table: str
    column: Optional[str] = None


class Metric(MetadataModel):
    """Named, typed calculation expression"""

    name: str
    description: str = ""
    type: MetricType = MetricType.SIMPLE
    calculation: str
    dependencies: List[MetricDependency] = Field(default_factory=list)
    validations: List[str] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value
