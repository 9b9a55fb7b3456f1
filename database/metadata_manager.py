# database/metadata_manager.py

import logging
from typing import Any, Dict, Mapping, Optional

from database.metadata_graph import MetadataGraph
from database.concept_index import ConceptIndex
from database.join_paths import JoinPathResolver
from nodes.planner import QueryPlanBuilder
from state.plan_state import QueryPlan

logger = logging.getLogger(__name__)

class MetadataManager:
    """
    Owns the semantic metadata of one connector: tables and relationships,
    business concepts and metrics, plus the join resolver and plan builder
    that read them.

    Registration happens once during setup; afterwards the registries are
    only read, so planning calls can run concurrently without locking.
    """

    def __init__(self, concept_index: Optional[ConceptIndex] = None):
        self.graph = MetadataGraph()
        self.concepts = concept_index or ConceptIndex()
        self.join_resolver = JoinPathResolver(self.graph)
        self.planner = QueryPlanBuilder(self.concepts, self.join_resolver)

    # Registration shortcuts
    def register_table(self, table) -> None:
        self.graph.register_table(table)

    def register_relationship(self, relationship) -> None:
        self.graph.register_relationship(relationship)

    def register_business_concept(self, concept) -> None:
        self.concepts.register_business_concept(concept)

    def register_metric(self, metric) -> None:
        self.concepts.register_metric(metric)

    def initialize(self, metadata: Mapping[str, Any]) -> None:
        """
        Register a whole metadata bundle

        Args:
            metadata: {"tables": [...], "relationships": [...],
                       "concepts": [...], "metrics": [...]}
        """
        tables = metadata.get("tables") or []
        relationships = metadata.get("relationships") or []
        concepts = metadata.get("concepts") or []
        metrics = metadata.get("metrics") or []

        for table in tables:
            self.register_table(table)
        for relationship in relationships:
            self.register_relationship(relationship)
        for concept in concepts:
            self.register_business_concept(concept)
        for metric in metrics:
            self.register_metric(metric)

        logger.info(
            f"📚 Metadata registered: {len(tables)} tables, {len(relationships)} relationships, "
            f"{len(concepts)} concepts, {len(metrics)} metrics"
        )

    def get_join_path(self, source_table: str, target_table: str):
        return self.join_resolver.get_join_path(source_table, target_table)

    def analyze_business_question(self, question: str) -> QueryPlan:
        return self.planner.analyze_business_question(question)

    def get_overview(self) -> Dict[str, Any]:
        """High-level summary of what is registered"""
        return {
            "tables": {
                table.table_name: {
                    "business_name": table.business_name,
                    "description": table.description,
                    "related_tables": self.graph.get_related_tables(table.table_name),
                }
                for table in self.graph.tables
            },
            "relationships": [relationship.name for relationship in self.graph.relationships],
            "concepts": [concept.name for concept in self.concepts.concepts],
            "metrics": [metric.name for metric in self.concepts.metrics],
        }
