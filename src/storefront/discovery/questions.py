"""Question bank for the guided product finder."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

SelectionMode = Literal["single", "multiple"]


@dataclass(slots=True, frozen=True)
class Option:
    """An answer choice carrying the criteria fragment merged when selected."""

    value: str
    label: str
    fragment: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Question:
    id: str
    prompt: str
    mode: SelectionMode
    options: tuple[Option, ...]

    @property
    def is_multiple(self) -> bool:
        return self.mode == "multiple"

    def option(self, value: str) -> Option | None:
        for option in self.options:
            if option.value == value:
                return option
        return None


QUESTION_BANK: tuple[Question, ...] = (
    Question(
        id="occasion",
        prompt="What's the occasion you're shopping for?",
        mode="single",
        options=(
            Option("casual", "Casual Hangout", {"styles": ("casual",), "categories": ("t-shirts", "jeans", "sneakers")}),
            Option("work", "Work/Business", {"styles": ("formal", "business"), "categories": ("shirts", "pants", "blazers")}),
            Option("party", "Party/Night Out", {"styles": ("party",), "categories": ("dresses", "heels", "accessories")}),
            Option("workout", "Workout/Sports", {"categories": ("activewear", "sneakers"), "materials": ("polyester", "spandex")}),
            Option("formal", "Formal Event", {"styles": ("formal",), "categories": ("suits", "dresses", "formal shoes")}),
        ),
    ),
    Question(
        id="budget",
        prompt="What's your budget range?",
        mode="single",
        options=(
            Option("budget", "Under $50", {"price_range": {"min": 0, "max": 50}}),
            Option("mid", "$50 - $150", {"price_range": {"min": 50, "max": 150}}),
            Option("premium", "$150 - $300", {"price_range": {"min": 150, "max": 300}}),
            Option("luxury", "$300+", {"price_range": {"min": 300, "max": 2000}}),
        ),
    ),
    Question(
        id="style",
        prompt="Which style speaks to you?",
        mode="multiple",
        options=(
            Option("minimalist", "Minimalist", {"styles": ("minimalist",)}),
            Option("streetwear", "Streetwear", {"styles": ("streetwear",)}),
            Option("vintage", "Vintage Vibes", {"styles": ("vintage",), "conditions": ("vintage",)}),
            Option("bohemian", "Bohemian", {"styles": ("bohemian",)}),
            Option("classic", "Classic", {"styles": ("formal", "business")}),
        ),
    ),
    Question(
        id="season",
        prompt="What season are you shopping for?",
        mode="single",
        options=(
            Option("summer", "Summer Vibes", {"seasons": ("summer",), "materials": ("cotton", "linen")}),
            Option("winter", "Winter Warmth", {"seasons": ("winter",), "materials": ("wool", "cashmere")}),
            Option("spring", "Spring Fresh", {"seasons": ("spring",)}),
            Option("fall", "Fall Fashion", {"seasons": ("fall",)}),
            Option("all", "All Season", {"seasons": ("all-season",)}),
        ),
    ),
    Question(
        id="gender",
        prompt="Who are you shopping for?",
        mode="single",
        options=(
            Option("men", "Men", {"genders": ("men",)}),
            Option("women", "Women", {"genders": ("women",)}),
            Option("unisex", "Unisex", {"genders": ("unisex",)}),
            Option("kids", "Kids", {"genders": ("kids",), "age_groups": ("child", "teen")}),
        ),
    ),
)


def select_questions(count: int = 5, bank: tuple[Question, ...] = QUESTION_BANK) -> tuple[Question, ...]:
    """Pick the questions for one session.

    Always the first ``count`` questions of ``bank``, so every session asks
    the same questions in the same order.
    """

    if count <= 0:
        raise ValueError(f"Question count must be positive, got {count}")
    return bank[:count]
