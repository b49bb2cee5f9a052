"""
Ordered-rule evaluation shared by the classifiers.

A rule is a pure callable returning a ClassificationResult or None. The
first rule that returns a result wins; later rules are never evaluated.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, TypeVar

from src.schemas.hardware import ClassificationResult
from src.services.hardware.tables import KeywordEntry
from src.utils.logger import log

T = TypeVar("T")


@dataclass(frozen=True)
class Rule(Generic[T]):
    """A named classification step."""
    name: str
    apply: Callable[[T], Optional[ClassificationResult]]

    def __call__(self, subject: T) -> Optional[ClassificationResult]:
        return self.apply(subject)


def first_success(rules: Iterable[Callable[[T], Optional[ClassificationResult]]],
                  subject: T) -> Optional[ClassificationResult]:
    """Evaluate ``rules`` in order and return the first non-None result."""
    for rule in rules:
        result = rule(subject)
        if result is not None:
            log.debug(f"Rule {getattr(rule, 'name', rule)} matched via {result.signal}")
            return result
    return None


def match_keywords(entries: Sequence[KeywordEntry], text: str,
                   result: Any = None) -> Optional[ClassificationResult]:
    """
    First keyword entry matching ``text`` (already lowercased).

    Args:
        entries: Ordered keyword table
        text: Subject text
        result: Value to report instead of the entry's own result
    """
    for entry in entries:
        if entry.matches(text):
            value = entry.result if result is None else result
            return ClassificationResult(value, f"keyword:{entry.signal}")
    return None
