"""Fuzzy matching of free-text exercise names to Hevy exercise templates.

Each template is searched on three keys: title (weight 0.7), primary muscle
group (0.2) and secondary muscle groups (0.1). For every key the distance is
an approximate-substring mismatch plus a penalty for how far into the field
the match starts. Keys whose distance exceeds MATCH_THRESHOLD are ignored; a
template with no matching key is not a candidate. The candidate score is the
product of ``distance ** weight`` over matching keys, so a perfect key match
scores 0, and confidence is ``1 - score``. Among equal scores an exact title
ranks first, then the shorter title, then catalog order.
"""
import logging
import sys
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, utils

from hevy_importer.hevy_models import ExerciseTemplate
from hevy_importer.models import Exercise


logger = logging.getLogger(__name__)

KEY_WEIGHTS = {
    "title": 0.7,
    "primary_muscle_group": 0.2,
    "secondary_muscle_groups": 0.1,
}

MATCH_THRESHOLD = 0.4  # max distance for a key to count as matched
MATCH_DISTANCE = 100  # characters of offset that cost a full point of distance

DEFAULT_MATCH_LIMIT = 5


@dataclass(frozen=True)
class TemplateRef:
    id: str
    title: str
    type: str


@dataclass(frozen=True)
class ExerciseMatch:
    """A candidate template for one exercise."""
    exercise: Exercise
    template_id: str
    confidence: float
    template: TemplateRef


def field_distance(query: str, value: str) -> float:
    """
    Distance in [0, 1] between a processed query and a processed field value.

    When the query fits inside the value it is aligned as a substring and the
    alignment offset is penalized; otherwise the two are compared whole.
    """
    if not query or not value:
        return 1.0

    if len(query) <= len(value):
        alignment = fuzz.partial_ratio_alignment(query, value)
        if alignment is None:
            return 1.0
        mismatch = 1 - alignment.score / 100
        offset = alignment.dest_start / MATCH_DISTANCE
    else:
        mismatch = 1 - fuzz.ratio(query, value) / 100
        offset = 0.0

    return min(1.0, mismatch + offset)


class ExerciseMatcher:
    """Searches an immutable template catalog for free-text exercise names."""

    def __init__(self, templates: Sequence[ExerciseTemplate]):
        self._templates = list(templates)
        self._by_id = {template.id: template for template in self._templates}
        # Search keys are processed once; the catalog does not change during a run
        self._keys: List[Dict[str, List[str]]] = [
            {
                "title": self._process_all([template.title]),
                "primary_muscle_group": self._process_all([template.primary_muscle_group]),
                "secondary_muscle_groups": self._process_all(template.secondary_muscle_groups),
            }
            for template in self._templates
        ]

    @staticmethod
    def _process_all(values: Sequence[Optional[str]]) -> List[str]:
        processed = (utils.default_process(value) for value in values if value)
        return [value for value in processed if value]

    @property
    def templates(self) -> List[ExerciseTemplate]:
        return list(self._templates)

    def template_by_id(self, template_id: str) -> Optional[ExerciseTemplate]:
        return self._by_id.get(template_id)

    def by_muscle_group(self) -> Dict[str, List[ExerciseTemplate]]:
        """Templates grouped by primary muscle group ('Other' when missing)."""
        grouped: Dict[str, List[ExerciseTemplate]] = defaultdict(list)
        for template in self._templates:
            grouped[template.primary_muscle_group or "Other"].append(template)
        return dict(grouped)

    def _score(self, query: str, keys: Dict[str, List[str]]) -> Optional[float]:
        """Combined score for one template, or None if no key matches."""
        score = 1.0
        matched = False
        for key, weight in KEY_WEIGHTS.items():
            distances = [field_distance(query, value) for value in keys[key]]
            if not distances:
                continue
            best = min(distances)
            if best > MATCH_THRESHOLD:
                continue
            matched = True
            score *= best ** weight
        return score if matched else None

    def _search(self, name: str) -> List[Tuple[float, int]]:
        query = utils.default_process(name)
        if not query:
            return []

        ranked = []
        for index, keys in enumerate(self._keys):
            score = self._score(query, keys)
            if score is not None:
                ranked.append((score, self._title_rank(query, keys), index))
        # Equal scores: exact title first, then the shorter title, then catalog order
        ranked.sort()
        return [(score, index) for score, _, index in ranked]

    @staticmethod
    def _title_rank(query: str, keys: Dict[str, List[str]]) -> Tuple[bool, int]:
        titles = keys["title"]
        if not titles:
            return True, sys.maxsize
        return titles[0] != query, len(titles[0])

    def _to_match(self, exercise: Exercise, score: float, index: int) -> ExerciseMatch:
        template = self._templates[index]
        return ExerciseMatch(
            exercise=exercise,
            template_id=template.id,
            confidence=max(0.0, min(1.0, 1 - score)),
            template=TemplateRef(id=template.id, title=template.title, type=template.type),
        )

    def top_matches(self, exercise: Exercise, limit: int = DEFAULT_MATCH_LIMIT) -> List[ExerciseMatch]:
        """Candidate matches for an exercise, best first."""
        return [
            self._to_match(exercise, score, index)
            for score, index in self._search(exercise.name)[:limit]
        ]

    def best_match(self, exercise: Exercise) -> Optional[ExerciseMatch]:
        matches = self.top_matches(exercise, limit=1)
        return matches[0] if matches else None
