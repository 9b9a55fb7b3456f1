# tools/sql_tools.py

import logging
import re
from typing import Dict, List, Any, Mapping, Tuple, Union

from pydantic import ValidationError

from state.metadata_state import MetricType
from state.plan_state import (
    AnalysisMetadata, AnalysisRequest, AnalysisResult, AnalysisType,
    QueryPlan, BUSINESS_ANALYSIS
)
from tools.error_manager import (
    SemanticLayerError, NotConnectedError, InvalidRequestError, ExecutionFailedError
)

logger = logging.getLogger(__name__)


def sql_alias(name: str) -> str:
    """Column alias for a metric or column name ('total revenue' -> 'total_revenue')"""
    return re.sub(r"\W+", "_", name.strip()).strip("_")


class AnalysisEngine:
    """
    Generates SQL for business questions and direct analysis requests and runs
    it through the storage connector.

    Only ``custom`` requests carry bound parameters. Table and column names,
    concept filters and metric calculations are pasted into the SQL text as
    written: metadata is trusted operator input and is not escaped.
    """

    def __init__(self, metadata, connector):
        self.metadata = metadata
        self.connector = connector

    def analyze(self, request: Union[AnalysisRequest, Mapping[str, Any]]) -> AnalysisResult:
        """
        Build, execute and wrap an analysis

        Args:
            request: AnalysisRequest or its camelCase dict form

        Returns:
            AnalysisResult envelope with rows and request metadata
        """
        if not self.connector.is_connected():
            raise NotConnectedError("analyze")

        request = self._coerce_request(request)
        query, params = self.build_query(request)
        result_type = BUSINESS_ANALYSIS if request.business_question else request.type.lower()

        logger.info(f"Executing {result_type} query: {query}")
        try:
            results = self.connector.query(query, params)
        except SemanticLayerError:
            raise
        except Exception as e:
            raise ExecutionFailedError(
                f"Analysis failed: {e}",
                context={"query": query, "analysis_type": result_type}
            ) from e

        logger.info(f"✅ Analysis returned {len(results)} rows")
        return AnalysisResult(
            type=result_type,
            results=results,
            query=query,
            metadata=AnalysisMetadata(
                business_question=request.business_question,
                table=request.table,
                columns=request.columns or None,
                conditions=request.conditions,
            )
        )

    def build_query(self, request: Union[AnalysisRequest, Mapping[str, Any]]) -> Tuple[str, List[Any]]:
        """SQL text and positional parameters for a request, without executing it"""
        request = self._coerce_request(request)

        if request.business_question:
            plan = self.metadata.analyze_business_question(request.business_question)
            return self.build_business_query(plan, request), []

        if not request.type:
            raise InvalidRequestError("Analysis request needs either a businessQuestion or a type")

        try:
            analysis_type = AnalysisType(request.type.lower())
        except ValueError:
            raise InvalidRequestError(
                f"Unsupported analysis type: {request.type}",
                context={"type": request.type}
            )

        if analysis_type == AnalysisType.CUSTOM:
            if not request.query or not request.query.strip():
                raise InvalidRequestError("Custom analysis requires a query")
            return request.query, list(request.params)

        if analysis_type == AnalysisType.CORRELATION and len(request.columns) != 2:
            raise InvalidRequestError(
                "Correlation analysis requires exactly 2 columns",
                context={"columns": request.columns}
            )
        if not request.table:
            raise InvalidRequestError(f"{analysis_type.value.capitalize()} analysis requires a table")
        if not request.columns:
            raise InvalidRequestError(f"{analysis_type.value.capitalize()} analysis requires at least one column")

        builders = {
            AnalysisType.SUMMARY: self._build_summary_query,
            AnalysisType.DISTRIBUTION: self._build_distribution_query,
            AnalysisType.CORRELATION: self._build_correlation_query,
        }
        return builders[analysis_type](request), []

    def build_business_query(self, plan: QueryPlan, request: AnalysisRequest) -> str:
        """SQL for a query plan, with group by / having / limit taken from the request"""
        if plan.is_empty:
            raise InvalidRequestError(
                f"No business concepts or metrics match the question: '{plan.question}'",
                context={"business_question": plan.question}
            )

        select_list = self._metric_expressions(plan)
        lines = [
            f"SELECT {', '.join(select_list) if select_list else '*'}",
            f"FROM {plan.main_table}",
        ]
        lines.extend(self._join_clauses(plan))

        if plan.filters:
            lines.append("WHERE " + " AND ".join(plan.filters))
        lines.extend(self._trailing_clauses(request))
        return "\n".join(lines)

    def _metric_expressions(self, plan: QueryPlan) -> List[str]:
        expressions = []
        for metric_name in plan.metrics:
            metric = self.metadata.concepts.get_metric(metric_name)
            alias = sql_alias(metric_name)
            if metric.type == MetricType.SIMPLE:
                expressions.append(f"{metric.calculation} AS {alias}")
            elif metric.type == MetricType.CALCULATED:
                expressions.append(f"({metric.calculation}) AS {alias}")
            else:
                logger.warning(f"⚠️ Skipping {metric.type.value} metric '{metric_name}': no inline SQL form")
        return expressions

    def _join_clauses(self, plan: QueryPlan) -> List[str]:
        # Join whichever end of the edge is not in the FROM clause yet
        joined = {plan.main_table}
        clauses = []
        for edge in plan.joins:
            if edge.source_table not in joined and edge.target_table not in joined:
                # Only happens after an unresolved pair: neither side is reachable from FROM
                logger.warning(f"⚠️ Skipping join '{edge.name}': neither table is in the FROM clause")
                continue
            if edge.target_table not in joined:
                table = edge.target_table
            elif edge.source_table not in joined:
                table = edge.source_table
            else:
                continue
            joined.add(table)
            clauses.append(
                f"INNER JOIN {table} ON "
                f"{edge.source_table}.{edge.source_key} = {edge.target_table}.{edge.target_key}"
            )
        return clauses

    def _trailing_clauses(self, request: AnalysisRequest, order_by: str = None) -> List[str]:
        lines = []
        if request.group_by:
            lines.append(f"GROUP BY {request.group_by}")
        if request.having:
            lines.append(f"HAVING {request.having}")
        if order_by:
            lines.append(f"ORDER BY {order_by}")
        if request.limit:
            lines.append(f"LIMIT {request.limit}")
        return lines

    def _where_clause(self, request: AnalysisRequest) -> List[str]:
        return [f"WHERE {request.conditions}"] if request.conditions else []

    def _build_summary_query(self, request: AnalysisRequest) -> str:
        select_list = []
        for column in request.columns:
            alias = sql_alias(column)
            select_list.extend([
                f"COUNT({column}) AS {alias}_count",
                f"AVG({column}) AS {alias}_avg",
                f"MIN({column}) AS {alias}_min",
                f"MAX({column}) AS {alias}_max",
                f"STDDEV({column}) AS {alias}_std",
            ])
        lines = [f"SELECT {', '.join(select_list)}", f"FROM {request.table}"]
        lines.extend(self._where_clause(request))
        return "\n".join(lines)

    def _build_distribution_query(self, request: AnalysisRequest) -> str:
        columns = ", ".join(request.columns)
        lines = [f"SELECT {columns}, COUNT(*) AS frequency", f"FROM {request.table}"]
        lines.extend(self._where_clause(request))
        lines.append(f"GROUP BY {columns}")
        if request.having:
            lines.append(f"HAVING {request.having}")
        lines.append("ORDER BY frequency DESC")
        if request.limit:
            lines.append(f"LIMIT {request.limit}")
        return "\n".join(lines)

    def _build_correlation_query(self, request: AnalysisRequest) -> str:
        x, y = request.columns
        # Pearson coefficient from sums and sums of products
        numerator = f"COUNT(*) * SUM({x} * {y}) - SUM({x}) * SUM({y})"
        denominator = (
            f"SQRT((COUNT(*) * SUM({x} * {x}) - SUM({x}) * SUM({x})) * "
            f"(COUNT(*) * SUM({y} * {y}) - SUM({y}) * SUM({y})))"
        )
        lines = [
            f"SELECT ({numerator}) / ({denominator}) AS correlation_coefficient",
            f"FROM {request.table}",
        ]
        lines.extend(self._where_clause(request))
        return "\n".join(lines)

    def _coerce_request(self, request: Union[AnalysisRequest, Mapping[str, Any]]) -> AnalysisRequest:
        if isinstance(request, AnalysisRequest):
            return request
        if not isinstance(request, Mapping):
            raise InvalidRequestError(f"Analysis request must be an object, got {type(request).__name__}")
        try:
            return AnalysisRequest.model_validate(request)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid analysis request: {e}") from e


def format_results_for_display(result: AnalysisResult, max_rows: int = 10) -> str:
    """
    Format analysis results for human-readable display
    """
    rows = result.results
    if not rows:
        return "✅ Query executed successfully but returned no results."

    output = f"✅ {result.type} returned {len(rows)} rows:\n\n"

    headers = list(rows[0].keys())
    header_row = " | ".join(str(header).ljust(15)[:15] for header in headers)
    output += header_row + "\n" + "-" * len(header_row) + "\n"

    for row in rows[:max_rows]:
        output += " | ".join(str(row.get(header, "")).ljust(15)[:15] for header in headers) + "\n"

    if len(rows) > max_rows:
        output += f"\n... and {len(rows) - max_rows} more rows"

    return output
