"""Questionnaire flow that turns shopper answers into filter criteria."""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..models import FilterCriteria, default_criteria
from .questions import Option, Question, select_questions

logger = logging.getLogger(__name__)

Answer = str | tuple[str, ...]
AnswerMap = dict[str, Answer]

_CRITERIA_FIELDS = frozenset(field.name for field in dataclasses.fields(FilterCriteria))


def merge_fragment(criteria: FilterCriteria, fragment: Mapping[str, Any]) -> FilterCriteria:
    """Merge an option's fragment into ``criteria`` and return the result.

    Sequences are unioned into the existing values (first occurrence order is
    kept). Mappings overwrite the target object key by key. Booleans and other
    scalars replace the existing value.
    """

    changes: dict[str, Any] = {}
    for key, value in fragment.items():
        if key not in _CRITERIA_FIELDS:
            raise KeyError(f"Unknown criteria field in fragment: {key}")
        current = changes.get(key, getattr(criteria, key))
        if isinstance(value, (list, tuple, set, frozenset)):
            changes[key] = tuple(dict.fromkeys((*current, *value)))
        elif isinstance(value, Mapping):
            changes[key] = dataclasses.replace(current, **value)
        else:
            changes[key] = value
    return dataclasses.replace(criteria, **changes)


def compile_answers(questions: Sequence[Question], answers: Mapping[str, Answer]) -> FilterCriteria:
    """Build criteria from ``answers``.

    Fragments are merged in question order, then in selection order within a
    multi-select answer, starting from the permissive defaults.
    """

    criteria = default_criteria()
    for question in questions:
        answer = answers.get(question.id)
        if not answer:
            continue
        values = answer if isinstance(answer, tuple) else (answer,)
        for value in values:
            option = question.option(value)
            if option is None:
                logger.debug("Ignoring unknown answer %r for question %s", value, question.id)
                continue
            criteria = merge_fragment(criteria, option.fragment)
    return criteria


class DiscoverySession:
    """State of one pass through the guided product finder.

    The session sits on question ``index`` until the last question is
    answered and advanced past, after which it is complete and holds the
    compiled criteria.
    """

    def __init__(self, questions: Sequence[Question] | None = None, question_count: int = 5) -> None:
        self.questions: tuple[Question, ...] = tuple(questions) if questions else select_questions(question_count)
        self.index = 0
        self.answers: AnswerMap = {}
        self._compiled: FilterCriteria | None = None

    def start(self) -> None:
        """Reset to the first question with no answers."""

        self.index = 0
        self.answers = {}
        self._compiled = None

    def current_question(self) -> Question | None:
        if self.is_complete():
            return None
        return self.questions[self.index]

    def is_complete(self) -> bool:
        return self._compiled is not None

    def compiled_criteria(self) -> FilterCriteria | None:
        return self._compiled

    @property
    def progress(self) -> tuple[int, int]:
        """``(question number, total)`` for display, 1-based."""

        return min(self.index + 1, len(self.questions)), len(self.questions)

    def current_answer(self) -> Answer | None:
        question = self.current_question()
        if question is None:
            return None
        return self.answers.get(question.id)

    def select_option(self, option: Option | str) -> bool:
        """Record a choice for the current question.

        Single-select questions replace their answer; multi-select questions
        toggle the value. Returns ``False`` when the choice does not belong to
        the current question or the session is already complete.
        """

        question = self.current_question()
        if question is None:
            return False
        value = option.value if isinstance(option, Option) else option
        if question.option(value) is None:
            return False

        if question.is_multiple:
            selected = self.answers.get(question.id, ())
            if value in selected:
                self.answers[question.id] = tuple(entry for entry in selected if entry != value)
            else:
                self.answers[question.id] = (*selected, value)
        else:
            self.answers[question.id] = value
        return True

    def can_advance(self) -> bool:
        return bool(self.current_answer())

    def advance(self) -> bool:
        """Move to the next question, compiling after the last one."""

        if not self.can_advance():
            return False
        if self.index < len(self.questions) - 1:
            self.index += 1
        else:
            self._compiled = compile_answers(self.questions, self.answers)
        return True

    def retreat(self) -> bool:
        if self.is_complete() or self.index == 0:
            return False
        self.index -= 1
        return True
