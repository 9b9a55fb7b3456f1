# database/concept_index.py

import logging
from typing import Any, Callable, Dict, List, Mapping, Union

from state.metadata_state import BusinessConcept, Metric
from database.metadata_graph import parse_descriptor
from tools.error_manager import NotFoundError, error_manager

logger = logging.getLogger(__name__)


def keyword_match(phrase: str, question: str) -> bool:
    """Case-insensitive substring test of a phrase against a question (an empty phrase matches anything)"""
    return phrase.lower() in question.lower()


class ConceptIndex:
    """
    Registry of business concepts and metrics, matched against free-text questions.

    Matching is a plain substring test on names and example questions. A
    different ``matcher(phrase, question) -> bool`` can be passed in without
    touching the planner.
    """

    def __init__(self, matcher: Callable[[str, str], bool] = keyword_match):
        self.matcher = matcher
        self._concepts: Dict[str, BusinessConcept] = {}
        self._metrics: Dict[str, Metric] = {}

    def register_business_concept(self, concept: Union[BusinessConcept, Mapping[str, Any]]) -> None:
        concept = parse_descriptor(BusinessConcept, concept)
        self._concepts[concept.name] = concept

    def register_metric(self, metric: Union[Metric, Mapping[str, Any]]) -> None:
        metric = parse_descriptor(Metric, metric)
        self._metrics[metric.name] = metric

    def get_concept(self, name: str) -> BusinessConcept:
        if name not in self._concepts:
            raise NotFoundError(
                "concept", name,
                error_manager.suggest_alternatives(name, list(self._concepts))
            )
        return self._concepts[name]

    def get_metric(self, name: str) -> Metric:
        if name not in self._metrics:
            raise NotFoundError(
                "metric", name,
                error_manager.suggest_alternatives(name, list(self._metrics))
            )
        return self._metrics[name]

    @property
    def concepts(self) -> List[BusinessConcept]:
        return list(self._concepts.values())

    @property
    def metrics(self) -> List[Metric]:
        return list(self._metrics.values())

    def find_relevant_concepts(self, question: str) -> List[str]:
        """Concepts whose name or any example question appears in the question"""
        matches = []
        for name, concept in self._concepts.items():
            if self.matcher(name, question) or any(
                self.matcher(example, question) for example in concept.example_questions
            ):
                matches.append(name)

        logger.debug(f"Concepts matched for '{question}': {matches}")
        return matches

    def find_relevant_metrics(self, question: str) -> List[str]:
        """Metrics whose name appears in the question"""
        matches = [name for name in self._metrics if self.matcher(name, question)]
        logger.debug(f"Metrics matched for '{question}': {matches}")
        return matches
