"""
fuzzy_system.py
---------------

Generic Mamdani fuzzy inference engine.

Building blocks:
- FuzzySet           - a name bound to one membership function,
- LinguisticVariable - a named numeric range with an ordered list of sets,
- FuzzyRule          - antecedents (variable, set) combined with AND (min)
                       or OR (max), consequents naming output sets,
- FuzzySystem        - N input variables, one output variable, a rule list
                       and centroid defuzzification.

Evaluation runs in three phases:
    1. fuzzification of every input variable present in the input map,
    2. rule evaluation; the activation of each output set is the maximum
       firing strength of the rules that target it,
    3. centroid defuzzification over the clipped, max-aggregated output
       sets (falls back to the midpoint of the output range when no rule
       fired).

References to unknown variables or sets never raise: unresolved antecedents
are skipped and unresolved consequents are ignored, with a log record.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from membership import MembershipFunction, evaluate

logger = logging.getLogger(__name__)

EPS = sys.float_info.epsilon
CENTROID_STEPS = 1000


# -------------------------------------------------------------------------
# Sets and operators
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class FuzzySet:
    """A named fuzzy set owning exactly one membership function."""
    name: str
    membership_function: MembershipFunction

    def evaluate(self, x):
        return evaluate(self.membership_function, x)


class FuzzyOperation:
    """Zadeh operators: AND = min, OR = max, NOT = 1 - a."""

    @staticmethod
    def and_(a: float, b: float) -> float:
        return min(a, b)

    @staticmethod
    def or_(a: float, b: float) -> float:
        return max(a, b)

    @staticmethod
    def not_(a: float) -> float:
        return 1.0 - a


# -------------------------------------------------------------------------
# Linguistic variable
# -------------------------------------------------------------------------

class LinguisticVariable:
    """
    Named numeric range with an ordered collection of fuzzy sets.

    The order of sets only matters for display; set names must be unique.
    """

    def __init__(self, name: str, value_range: tuple[float, float]) -> None:
        lo, hi = value_range
        if lo > hi:
            raise ValueError(f"Variable '{name}': range min {lo} exceeds max {hi}")
        self.name = name
        self.range: tuple[float, float] = (float(lo), float(hi))
        self.fuzzy_sets: list[FuzzySet] = []

    def add_set(self, fuzzy_set: FuzzySet) -> LinguisticVariable:
        if self.get_set(fuzzy_set.name) is not None:
            raise ValueError(
                f"Variable '{self.name}' already has a set named '{fuzzy_set.name}'"
            )
        self.fuzzy_sets.append(fuzzy_set)
        return self

    def get_set(self, name: str) -> FuzzySet | None:
        for fuzzy_set in self.fuzzy_sets:
            if fuzzy_set.name == name:
                return fuzzy_set
        return None

    @property
    def set_names(self) -> list[str]:
        return [s.name for s in self.fuzzy_sets]

    @property
    def midpoint(self) -> float:
        return (self.range[0] + self.range[1]) / 2.0

    def universe(self, steps: int = CENTROID_STEPS) -> np.ndarray:
        """Range discretised into `steps` equal intervals (steps + 1 samples)."""
        return np.linspace(self.range[0], self.range[1], steps + 1)

    def fuzzify(self, value: float) -> dict[str, float]:
        """
        Membership degree of `value` in every set of the variable.

        Values outside the declared range are evaluated as they are; the
        range check is advisory only.
        """
        lo, hi = self.range
        if value < lo or value > hi:
            logger.debug(
                "Input '%s' = %s is outside expected range (%s, %s)",
                self.name, value, lo, hi,
            )
        return {s.name: s.evaluate(value) for s in self.fuzzy_sets}

    def __repr__(self) -> str:
        return f"<LinguisticVariable {self.name!r} range={self.range} sets={self.set_names}>"


# -------------------------------------------------------------------------
# Rules
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class Antecedent:
    variable: str
    set: str


@dataclass(frozen=True)
class Consequent:
    variable: str
    set: str


class RuleOperator(str, Enum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class FuzzyRule:
    """
    IF antecedent_1 <op> antecedent_2 ... THEN consequent_1, consequent_2 ...

    A rule with no antecedents (or none that resolve) has firing strength 0.
    """
    antecedents: tuple[Antecedent, ...]
    consequents: tuple[Consequent, ...]
    operator: RuleOperator = RuleOperator.AND

    @classmethod
    def when(cls, antecedents, consequents, operator: RuleOperator = RuleOperator.AND) -> FuzzyRule:
        """
        Build a rule from (variable, set) pairs, e.g.
        FuzzyRule.when([("temperature", "hot")], [("fan", "high")]).
        """
        return cls(
            antecedents=tuple(Antecedent(v, s) for v, s in antecedents),
            consequents=tuple(Consequent(v, s) for v, s in consequents),
            operator=RuleOperator(operator),
        )

    def evaluate(self, fuzzified: dict[str, dict[str, float]]) -> float:
        """
        Firing strength of the rule.

        :param fuzzified: variable name -> (set name -> degree)
        :return: min (AND) or max (OR) over the antecedents that resolve
        """
        degrees = []
        for antecedent in self.antecedents:
            memberships = fuzzified.get(antecedent.variable)
            if memberships is None or antecedent.set not in memberships:
                logger.debug("Antecedent %s is %s not resolved, skipped",
                             antecedent.variable, antecedent.set)
                continue
            degrees.append(memberships[antecedent.set])

        if not degrees:
            return 0.0
        if self.operator is RuleOperator.AND:
            return min(degrees)
        return max(degrees)

    def __str__(self) -> str:
        lhs = f" {self.operator.value} ".join(
            f"{a.variable} is {a.set}" for a in self.antecedents
        )
        rhs = ", ".join(f"{c.variable} is {c.set}" for c in self.consequents)
        return f"if {lhs} then {rhs}"


# -------------------------------------------------------------------------
# Defuzzification
# -------------------------------------------------------------------------

class DefuzzificationMethod(str, Enum):
    CENTROID = "Centroid"


class Defuzzifier:

    @staticmethod
    def centroid(output_variable: LinguisticVariable,
                 activated: dict[str, float],
                 steps: int = CENTROID_STEPS) -> float:
        """
        Centroid of the aggregated output: sum(x * m(x)) / sum(m(x)).

        m(x) is the pointwise maximum over activated sets of
        min(set(x), activation). Simple Riemann sums over steps + 1 samples.
        Returns the midpoint of the output range when nothing is activated.
        """
        xs = output_variable.universe(steps)
        aggregated = np.zeros_like(xs)

        for fuzzy_set in output_variable.fuzzy_sets:
            strength = activated.get(fuzzy_set.name)
            if strength is None:
                continue
            clipped = np.minimum(fuzzy_set.evaluate(xs), strength)
            np.maximum(aggregated, clipped, out=aggregated)

        denominator = float(aggregated.sum())
        if denominator < EPS:
            return output_variable.midpoint
        return float((xs * aggregated).sum() / denominator)


# -------------------------------------------------------------------------
# Fuzzy system
# -------------------------------------------------------------------------

@dataclass
class FuzzySystem:
    """Mamdani fuzzy system with N inputs and a single output."""
    name: str
    input_variables: list[LinguisticVariable] = field(default_factory=list)
    output_variable: LinguisticVariable = field(
        default_factory=lambda: LinguisticVariable("output", (0.0, 1.0))
    )
    rules: list[FuzzyRule] = field(default_factory=list)
    defuzzification_method: DefuzzificationMethod = DefuzzificationMethod.CENTROID

    def add_input(self, variable: LinguisticVariable) -> None:
        self.input_variables.append(variable)

    def set_output(self, variable: LinguisticVariable) -> None:
        self.output_variable = variable

    def add_rule(self, rule: FuzzyRule) -> None:
        self.rules.append(rule)

    def get_input(self, name: str) -> LinguisticVariable | None:
        for variable in self.input_variables:
            if variable.name == name:
                return variable
        return None

    def validate(self) -> list[str]:
        """
        Report rule references that do not resolve.

        Such references are tolerated at evaluation time (the antecedent is
        skipped, the consequent ignored); this check makes them visible.
        """
        problems = []
        for i, rule in enumerate(self.rules, start=1):
            for a in rule.antecedents:
                variable = self.get_input(a.variable)
                if variable is None:
                    problems.append(f"rule {i}: unknown input variable '{a.variable}'")
                elif variable.get_set(a.set) is None:
                    problems.append(f"rule {i}: unknown set '{a.set}' in '{a.variable}'")
            for c in rule.consequents:
                if self.output_variable.get_set(c.set) is None:
                    problems.append(
                        f"rule {i}: unknown set '{c.set}' in output '{self.output_variable.name}'"
                    )
        for problem in problems:
            logger.warning("%s: %s", self.name, problem)
        return problems

    def evaluate(self, inputs: dict[str, float]) -> tuple[str, float]:
        """
        Run fuzzification, rule evaluation and defuzzification.

        :param inputs: input variable name -> crisp value; variables that are
                       absent are not fuzzified at all
        :return: (output variable name, crisp output value)
        """
        fuzzified: dict[str, dict[str, float]] = {}
        for variable in self.input_variables:
            if variable.name not in inputs:
                logger.debug("Input variable '%s' not provided, skipped", variable.name)
                continue
            fuzzified[variable.name] = variable.fuzzify(inputs[variable.name])

        activated: dict[str, float] = {}
        any_fired = False
        for rule in self.rules:
            strength = rule.evaluate(fuzzified)
            if strength > EPS:
                any_fired = True
            for consequent in rule.consequents:
                if self.output_variable.get_set(consequent.set) is None:
                    logger.warning(
                        "Consequent set '%s' not found in output variable '%s'",
                        consequent.set, self.output_variable.name,
                    )
                    continue
                activated[consequent.set] = max(activated.get(consequent.set, 0.0), strength)

        if not any_fired:
            logger.debug("%s: no rules activated for inputs %s", self.name, inputs)

        value = Defuzzifier.centroid(self.output_variable, activated)
        return self.output_variable.name, value

    def describe(self) -> str:
        lines = [f"FuzzySystem: {self.name}", "Input variables:"]
        for variable in self.input_variables:
            lines.append(f"  - {variable.name} (range: {variable.range})")
            lines.extend(f"      . {s.name}" for s in variable.fuzzy_sets)
        out = self.output_variable
        lines.append("Output variable:")
        lines.append(f"  - {out.name} (range: {out.range})")
        lines.extend(f"      . {s.name}" for s in out.fuzzy_sets)
        lines.append("Rules:")
        lines.extend(f"  {i}: {rule}" for i, rule in enumerate(self.rules, start=1))
        lines.append(f"Defuzzification: {self.defuzzification_method.value}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.describe()
