"""Scenario catalog: picks role-play scenarios and phrases their questions."""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Optional, Sequence

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from datacollect.constants.scenarios import (
    DEFAULT_SCENARIOS,
    FIRST_QUESTION_TEMPLATES,
    FOLLOW_UP_QUESTION_TEMPLATES,
    PERSON_BY_GENDER,
)
from datacollect.exceptions import ConfigurationError
from datacollect.state.models import CurrentQuestionState

logger = logging.getLogger(__name__)

CHILD_AGE_LIMIT = 14


class Scenario(BaseModel):
    """One role-play topic and the symptoms it walks through, in order."""

    id: str
    destiny: str
    relation: str = "paciente"
    gender: str
    min_age: int = Field(ge=0)
    max_age: int = Field(ge=0)
    symptoms: list[str] = Field(min_length=1)

    @model_validator(mode="after")
    def check_age_range(self) -> "Scenario":
        if self.min_age > self.max_age:
            raise ValueError(f"Scenario {self.id}: min_age > max_age")
        return self


_scenario_list = TypeAdapter(list[Scenario])


def load_scenarios(path: Optional[str] = None) -> list[Scenario]:
    """Load scenarios from a JSON file, or the built-in defaults when path is None."""
    if path is None:
        return _scenario_list.validate_python(DEFAULT_SCENARIOS)
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read scenarios from {path}: {e}") from e
    return _scenario_list.validate_python(raw)


class ScenarioService:
    """
    Synthesizes Current-Question State for new scenarios and advances it.

    A scenario asks one question per symptom, capped at questions_per_scenario.
    The symptoms list on the state holds the symptoms already asked about.
    """

    def __init__(
        self,
        scenarios: Sequence[Scenario],
        questions_per_scenario: int = 3,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not scenarios:
            raise ConfigurationError("ScenarioService requires at least one scenario")
        self._scenarios = {s.id: s for s in scenarios}
        self._questions_per_scenario = questions_per_scenario
        self._rng = rng or random.Random()

    def new_scenario(self) -> CurrentQuestionState:
        scenario = self._rng.choice(list(self._scenarios.values()))
        age = self._rng.randint(scenario.min_age, scenario.max_age)
        symptom = scenario.symptoms[0]
        question = FIRST_QUESTION_TEMPLATES.get(
            scenario.relation, FIRST_QUESTION_TEMPLATES["paciente"]
        ).format(person=self._person(scenario, age), age=age, symptom=symptom)
        logger.debug("Starting scenario %s (age %d)", scenario.id, age)
        return CurrentQuestionState(
            question=question,
            destiny=scenario.destiny,
            relation=scenario.relation,
            gender=scenario.gender,
            age=age,
            symptoms=[symptom],
            scenario_id=scenario.id,
        )

    def question_limit(self, current: CurrentQuestionState) -> int:
        scenario = self._scenarios.get(current.scenario_id or "")
        if scenario is None:
            return len(current.symptoms)
        return min(self._questions_per_scenario, len(scenario.symptoms))

    def next_question(self, current: CurrentQuestionState) -> Optional[CurrentQuestionState]:
        """Return the state for the following question, or None when the scenario is exhausted."""
        if len(current.symptoms) >= self.question_limit(current):
            return None
        scenario = self._scenarios[current.scenario_id]
        symptom = scenario.symptoms[len(current.symptoms)]
        question = FOLLOW_UP_QUESTION_TEMPLATES.get(
            scenario.relation, FOLLOW_UP_QUESTION_TEMPLATES["paciente"]
        ).format(symptom=symptom)
        return current.model_copy(
            update={"question": question, "symptoms": [*current.symptoms, symptom]}
        )

    @staticmethod
    def _person(scenario: Scenario, age: int) -> str:
        forms = PERSON_BY_GENDER.get(scenario.gender, PERSON_BY_GENDER["feminino"])
        if scenario.relation != "paciente" or age < CHILD_AGE_LIMIT:
            return forms["child"]
        return forms["adult"]
