# nodes/planner.py

import logging

from state.plan_state import QueryPlan
from database.concept_index import ConceptIndex
from database.join_paths import JoinPathResolver

logger = logging.getLogger(__name__)

class QueryPlanBuilder:
    """
    Turns a business question into a QueryPlan: matched concepts and metrics,
    the tables they need, the joins between those tables and the concept filters.
    """

    def __init__(self, concept_index: ConceptIndex, join_resolver: JoinPathResolver):
        self.concept_index = concept_index
        self.join_resolver = join_resolver

    def analyze_business_question(self, question: str) -> QueryPlan:
        """
        Build a query plan for a business question

        Args:
            question: Free-text business question

        Returns:
            QueryPlan with tables in accumulation order and joins for each
            consecutive pair of tables
        """
        logger.info(f"🧭 Planning business question: '{question}'")

        plan = QueryPlan(
            question=question,
            concepts=self.concept_index.find_relevant_concepts(question),
            metrics=self.concept_index.find_relevant_metrics(question),
        )

        # Step 1: Tables and filters from concepts
        for concept_name in plan.concepts:
            concept = self.concept_index.get_concept(concept_name)
            for table_role in concept.tables:
                plan.add_table(table_role.table_name)
                plan.filters.extend(table_role.conditions)

        # Step 2: Tables the metrics depend on
        for metric_name in plan.metrics:
            metric = self.concept_index.get_metric(metric_name)
            for dependency in metric.dependencies:
                plan.add_table(dependency.table)

        # Step 3: Joins between consecutive tables
        self._resolve_joins(plan)

        logger.info(f"✅ Query plan ready: {plan.get_plan_summary()}")
        return plan

    def _resolve_joins(self, plan: QueryPlan) -> None:
        for left, right in zip(plan.tables, plan.tables[1:]):
            join_path = self.join_resolver.get_join_path(left, right)
            if join_path is None:
                # The pair contributes no joins; callers see it in unresolved_pairs
                logger.warning(f"⚠️ No join path between '{left}' and '{right}', pair left unjoined")
                plan.unresolved_pairs.append((left, right))
                continue
            plan.joins.extend(join_path)
