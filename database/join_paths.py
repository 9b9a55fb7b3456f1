# database/join_paths.py

import logging
from collections import defaultdict, deque
from typing import Dict, List, Optional, Tuple

from state.metadata_state import Relationship
from database.metadata_graph import MetadataGraph

logger = logging.getLogger(__name__)


class JoinPathResolver:
    """
    Shortest join path search over registered relationships.

    Every relationship is an undirected edge between its source and target
    table. Direction stays on the returned edges but does not limit reachability.
    """

    def __init__(self, graph: MetadataGraph):
        self.graph = graph

    def _adjacency(self) -> Dict[str, List[Tuple[Relationship, str]]]:
        # Neighbor lists follow relationship registration order
        adjacency: Dict[str, List[Tuple[Relationship, str]]] = defaultdict(list)
        for relationship in self.graph.relationships:
            adjacency[relationship.source_table].append((relationship, relationship.target_table))
            adjacency[relationship.target_table].append((relationship, relationship.source_table))
        return adjacency

    def get_join_path(self, source_table: str, target_table: str) -> Optional[List[Relationship]]:
        """
        Find the shortest chain of relationships connecting two tables.

        Args:
            source_table: Starting table
            target_table: Destination table

        Returns:
            Ordered list of relationship edges from source to target,
            [] when both tables are the same, None if no path exists
        """
        if source_table == target_table:
            return []

        adjacency = self._adjacency()
        visited = {source_table}
        queue = deque([(source_table, [])])

        while queue:
            current_table, path = queue.popleft()

            for relationship, next_table in adjacency[current_table]:
                if next_table in visited:
                    continue

                next_path = path + [relationship]
                if next_table == target_table:
                    logger.debug(
                        f"Join path {source_table} -> {target_table}: "
                        f"{' -> '.join(edge.name for edge in next_path)}"
                    )
                    return next_path

                visited.add(next_table)
                queue.append((next_table, next_path))

        logger.debug(f"No join path found: {source_table} -> {target_table}")
        return None

    def describe_join_path(self, source_table: str, target_table: str) -> str:
        """Human-readable join path, e.g. for API responses and logs"""
        path = self.get_join_path(source_table, target_table)
        if path is None:
            return "No known relationship"
        if not path:
            return f"Same table: {source_table}"

        tables = [source_table]
        for relationship in path:
            tables.append(relationship.other_end(tables[-1]))
        kind = "Direct" if len(path) == 1 else "Indirect"
        return f"{kind}: {' -> '.join(tables)}"
