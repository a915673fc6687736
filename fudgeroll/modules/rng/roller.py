"""
Formula evaluation: random rolls and deterministic minimum/maximum.

Every evaluation returns a fresh, frozen RollOutcome. Outcomes are never
mutated; ``with_d20_options`` returns a copy.
"""

import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .dice_parser import (
    MAX_POOL_DEPTH,
    DiceParser,
    DiceTerm,
    Formula,
    NumericTerm,
    PoolTerm,
    VariableTerm,
)

MAX_BINDING_DEPTH = 10


class FormulaError(ValueError):
    """Base class for formulas that cannot be evaluated against their bindings."""
    pass


class UnboundVariableError(FormulaError):
    """Raised when a formula references a variable missing from the bindings."""

    def __init__(self, name: str):
        super().__init__(f"Unbound variable '@{name}'")
        self.name = name


class FormulaBindingError(FormulaError):
    """Raised when a bound value cannot be used in a formula."""
    pass


class EvaluationMode(Enum):
    RANDOM = "random"
    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"

    def inverted(self) -> 'EvaluationMode':
        """The mode a subtracted term needs so the whole formula moves the same way."""
        if self is EvaluationMode.MINIMIZE:
            return EvaluationMode.MAXIMIZE
        if self is EvaluationMode.MAXIMIZE:
            return EvaluationMode.MINIMIZE
        return self

    def __str__(self) -> str:
        return self.value


def as_formula(formula: Union[str, Formula]) -> Formula:
    """Accept formula text or an already parsed Formula."""
    if isinstance(formula, Formula):
        return formula
    return DiceParser.parse(formula)


@dataclass(frozen=True)
class DieOptions:
    """Marking thresholds for d20s: critical at or above, fumble at or below."""
    critical: Optional[int] = None
    fumble: Optional[int] = None
    target: Optional[int] = None


@dataclass(frozen=True)
class DieFace:
    """One physical die result."""
    result: int
    active: bool = True
    rerolled: bool = False
    discarded: bool = False

    def __str__(self) -> str:
        return str(self.result) if self.active else f"~{self.result}~"


@dataclass(frozen=True)
class DiceResult:
    """Results of one dice term."""
    term: DiceTerm
    sign: int
    results: Tuple[DieFace, ...]
    options: DieOptions = field(default_factory=DieOptions)

    @property
    def faces(self) -> int:
        return self.term.faces

    @property
    def number(self) -> int:
        return self.term.number

    @property
    def values(self) -> List[int]:
        """Active (kept, not rerolled) face values."""
        return [face.result for face in self.results if face.active]

    @property
    def total(self) -> int:
        return sum(self.values)

    @property
    def signed_total(self) -> int:
        return self.sign * self.total

    @property
    def dice(self) -> Tuple['DiceResult', ...]:
        return (self,)

    @property
    def is_critical(self) -> bool:
        return self.options.critical is not None and any(v >= self.options.critical for v in self.values)

    @property
    def is_fumble(self) -> bool:
        return self.options.fumble is not None and any(v <= self.options.fumble for v in self.values)

    def with_die_options(self, faces: int, options: DieOptions) -> 'DiceResult':
        if self.faces != faces:
            return self
        return replace(self, options=options)

    def __str__(self) -> str:
        rolls = ', '.join(str(face) for face in self.results)
        return f"{self.term}: [{rolls}] = {self.total}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': 'dice',
            'expression': str(self.term),
            'sign': self.sign,
            'faces': self.faces,
            'number': self.number,
            'rolls': [
                {
                    'result': face.result,
                    'active': face.active,
                    'rerolled': face.rerolled,
                    'discarded': face.discarded,
                }
                for face in self.results
            ],
            'total': self.total,
            'critical': self.options.critical,
            'fumble': self.options.fumble,
            'target': self.options.target,
        }


@dataclass(frozen=True)
class NumericResult:
    term: NumericTerm
    sign: int

    @property
    def total(self) -> int:
        return self.term.value

    @property
    def signed_total(self) -> int:
        return self.sign * self.total

    @property
    def dice(self) -> Tuple[DiceResult, ...]:
        return ()

    def with_die_options(self, faces: int, options: DieOptions) -> 'NumericResult':
        return self

    def __str__(self) -> str:
        return str(self.term)

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': 'number', 'expression': str(self.term), 'sign': self.sign, 'total': self.total}


@dataclass(frozen=True)
class VariableResult:
    """A resolved ``@name``; ``outcome`` is set when the binding was itself a formula."""
    term: VariableTerm
    sign: int
    value: int
    outcome: Optional['RollOutcome'] = None

    @property
    def total(self) -> int:
        return self.value

    @property
    def signed_total(self) -> int:
        return self.sign * self.total

    @property
    def dice(self) -> Tuple[DiceResult, ...]:
        return self.outcome.dice if self.outcome else ()

    def with_die_options(self, faces: int, options: DieOptions) -> 'VariableResult':
        if self.outcome is None:
            return self
        return replace(self, outcome=self.outcome._with_die_options(faces, options))

    def __str__(self) -> str:
        if self.outcome is not None:
            return f"{self.term} ({self.outcome.formula}) = {self.value}"
        return f"{self.term} = {self.value}"

    def to_dict(self) -> Dict[str, Any]:
        data = {'kind': 'variable', 'expression': str(self.term), 'sign': self.sign, 'total': self.value}
        if self.outcome is not None:
            data['terms'] = [t.to_dict() for t in self.outcome.terms]
        return data


@dataclass(frozen=True)
class PoolResult:
    term: PoolTerm
    sign: int
    outcomes: Tuple['RollOutcome', ...]
    kept: Tuple[bool, ...]

    @property
    def total(self) -> int:
        return sum(o.total for o, keep in zip(self.outcomes, self.kept) if keep)

    @property
    def signed_total(self) -> int:
        return self.sign * self.total

    @property
    def dice(self) -> Tuple[DiceResult, ...]:
        return tuple(d for outcome in self.outcomes for d in outcome.dice)

    def with_die_options(self, faces: int, options: DieOptions) -> 'PoolResult':
        return replace(self, outcomes=tuple(o._with_die_options(faces, options) for o in self.outcomes))

    def __str__(self) -> str:
        entries = ', '.join(
            f"{o.total}" if keep else f"~{o.total}~"
            for o, keep in zip(self.outcomes, self.kept)
        )
        return f"{self.term}: [{entries}] = {self.total}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': 'pool',
            'expression': str(self.term),
            'sign': self.sign,
            'total': self.total,
            'entries': [
                {'kept': keep, 'total': o.total, 'terms': [t.to_dict() for t in o.terms]}
                for o, keep in zip(self.outcomes, self.kept)
            ],
        }


TermResult = Union[DiceResult, NumericResult, VariableResult, PoolResult]


@dataclass(frozen=True)
class RollOutcome:
    """
    Complete result of one formula evaluation.

    Attributes:
        formula: Normalized formula text
        total: Final total
        terms: Per-term results in formula order
        mode: How dice were resolved (random, minimize, maximize)
        attempts: Evaluations performed to produce this outcome
        seek_target: The total that was sought, if any
    """
    formula: str
    total: int
    terms: Tuple[TermResult, ...]
    mode: EvaluationMode = EvaluationMode.RANDOM
    attempts: int = 1
    seek_target: Optional[int] = None

    @property
    def dice(self) -> Tuple[DiceResult, ...]:
        """Every dice result, including those inside pools and formula bindings."""
        return tuple(d for term in self.terms for d in term.dice)

    @property
    def is_critical(self) -> bool:
        return any(d.is_critical for d in self.dice)

    @property
    def is_fumble(self) -> bool:
        return any(d.is_fumble for d in self.dice)

    @property
    def hit_target(self) -> bool:
        return self.seek_target is not None and self.total == self.seek_target

    def with_d20_options(self, critical: int = 20, fumble: int = 1,
                         target: Optional[int] = None) -> 'RollOutcome':
        """Copy of this outcome with critical/fumble/target marking on every d20."""
        return self._with_die_options(20, DieOptions(critical=critical, fumble=fumble, target=target))

    def _with_die_options(self, faces: int, options: DieOptions) -> 'RollOutcome':
        return replace(self, terms=tuple(t.with_die_options(faces, options) for t in self.terms))

    def get_breakdown(self) -> str:
        """Human-readable breakdown of the roll."""
        parts = []
        for index, term in enumerate(self.terms):
            text = str(term)
            if term.sign < 0:
                text = f"-{text}"
            elif index > 0:
                text = f"+{text}"
            parts.append(text)

        parts.append(f"**Total: {self.total}**")

        if self.is_critical:
            parts.append("🎯 CRITICAL SUCCESS!")
        elif self.is_fumble:
            parts.append("💀 CRITICAL FAILURE!")

        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for event data and JSON responses."""
        return {
            'formula': self.formula,
            'total': self.total,
            'mode': self.mode.value,
            'attempts': self.attempts,
            'seek_target': self.seek_target,
            'hit_target': self.hit_target,
            'breakdown': self.get_breakdown(),
            'critical': self.is_critical,
            'fumble': self.is_fumble,
            'terms': [t.to_dict() for t in self.terms],
        }


class DiceRoller:
    """
    Evaluates formulas against bindings.

    Supports:
    - Random rolls from a seedable ``random.Random``
    - Deterministic minimum and maximum evaluation (no randomness consumed)
    - Keep highest/lowest, reroll once, pools, formula-valued bindings
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize roller.

        Args:
            seed: Random seed for deterministic rolls (testing/replay)
        """
        self.rng = random.Random(seed)
        self.seed = seed

    def evaluate(
        self,
        formula: Union[str, Formula],
        bindings: Optional[Mapping[str, Any]] = None,
        mode: EvaluationMode = EvaluationMode.RANDOM
    ) -> RollOutcome:
        """
        Evaluate a formula once.

        Args:
            formula: Formula text or parsed Formula
            bindings: Values for ``@name`` references
            mode: RANDOM, MINIMIZE or MAXIMIZE

        Returns:
            A new RollOutcome

        Raises:
            DiceNotationError: If formula text is invalid
            UnboundVariableError: If a referenced variable is missing
            FormulaBindingError: If a bound value is unusable or bindings is not a mapping
            FormulaError: If pools are nested deeper than MAX_POOL_DEPTH
        """
        bindings = {} if bindings is None else bindings
        if not isinstance(bindings, Mapping):
            raise FormulaBindingError(f"Bindings must be a mapping of names to values, got {type(bindings).__name__}")
        return self._evaluate(as_formula(formula), bindings, mode, depth=0)

    def roll(self, formula: Union[str, Formula], bindings: Optional[Mapping[str, Any]] = None) -> RollOutcome:
        return self.evaluate(formula, bindings, EvaluationMode.RANDOM)

    def minimize(self, formula: Union[str, Formula], bindings: Optional[Mapping[str, Any]] = None) -> RollOutcome:
        return self.evaluate(formula, bindings, EvaluationMode.MINIMIZE)

    def maximize(self, formula: Union[str, Formula], bindings: Optional[Mapping[str, Any]] = None) -> RollOutcome:
        return self.evaluate(formula, bindings, EvaluationMode.MAXIMIZE)

    def _evaluate(self, formula: Formula, bindings: Mapping[str, Any],
                  mode: EvaluationMode, depth: int, nesting: int = 0) -> RollOutcome:
        terms = []
        for part in formula.parts:
            part_mode = mode if part.sign > 0 else mode.inverted()
            term = part.term
            if isinstance(term, DiceTerm):
                terms.append(self._roll_dice(term, part.sign, part_mode))
            elif isinstance(term, NumericTerm):
                terms.append(NumericResult(term, part.sign))
            elif isinstance(term, VariableTerm):
                terms.append(self._resolve_variable(term, part.sign, bindings, part_mode, depth))
            else:
                terms.append(self._roll_pool(term, part.sign, bindings, part_mode, depth, nesting))

        return RollOutcome(
            formula=str(formula),
            total=sum(t.signed_total for t in terms),
            terms=tuple(terms),
            mode=mode
        )

    def _roll_dice(self, term: DiceTerm, sign: int, mode: EvaluationMode) -> DiceResult:
        faces: List[DieFace] = []
        reroll = term.reroll
        for _ in range(term.number):
            face = self._face(term.faces, mode)
            if reroll and reroll.matches(face):
                faces.append(DieFace(face, active=False, rerolled=True))
                face = self._face(term.faces, mode)
            faces.append(DieFace(face))

        keep = term.keep
        if keep:
            active = [i for i, f in enumerate(faces) if f.active]
            ranked = sorted(active, key=lambda i: faces[i].result, reverse=keep.highest)
            for i in ranked[keep.count:]:
                faces[i] = replace(faces[i], active=False, discarded=True)

        return DiceResult(term=term, sign=sign, results=tuple(faces))

    def _face(self, sides: int, mode: EvaluationMode) -> int:
        if mode is EvaluationMode.MINIMIZE:
            return 1
        if mode is EvaluationMode.MAXIMIZE:
            return sides
        return self.rng.randint(1, sides)

    def _roll_pool(self, term: PoolTerm, sign: int, bindings: Mapping[str, Any],
                   mode: EvaluationMode, depth: int, nesting: int) -> PoolResult:
        # Formulas built by hand skip the parser's nesting check
        if nesting >= MAX_POOL_DEPTH:
            raise FormulaError(f"Pools nested deeper than {MAX_POOL_DEPTH} levels")
        outcomes = tuple(self._evaluate(f, bindings, mode, depth, nesting + 1) for f in term.formulas)
        kept = [True] * len(outcomes)
        if term.keep:
            ranked = sorted(range(len(outcomes)), key=lambda i: outcomes[i].total, reverse=term.keep.highest)
            for i in ranked[term.keep.count:]:
                kept[i] = False
        return PoolResult(term=term, sign=sign, outcomes=outcomes, kept=tuple(kept))

    def _resolve_variable(self, term: VariableTerm, sign: int, bindings: Mapping[str, Any],
                          mode: EvaluationMode, depth: int) -> VariableResult:
        value = lookup_binding(bindings, term.name)

        if isinstance(value, str):
            if depth >= MAX_BINDING_DEPTH:
                raise FormulaBindingError(f"Binding '@{term.name}' is nested too deeply")
            if not value.strip():
                return VariableResult(term, sign, 0)
            outcome = self._evaluate(DiceParser.parse(value), bindings, mode, depth + 1)
            return VariableResult(term, sign, outcome.total, outcome)

        return VariableResult(term, sign, coerce_number(term.name, value))


def lookup_binding(bindings: Mapping[str, Any], name: str) -> Any:
    """Resolve ``name`` (dotted paths walk nested mappings) or raise UnboundVariableError."""
    if not isinstance(bindings, Mapping):
        raise FormulaBindingError(f"Bindings must be a mapping of names to values, got {type(bindings).__name__}")
    if name in bindings:
        return bindings[name]

    value: Any = bindings
    for key in name.split('.'):
        if not isinstance(value, Mapping) or key not in value:
            raise UnboundVariableError(name)
        value = value[key]
    return value


def coerce_number(name: str, value: Any) -> int:
    """Accept ints and integral floats; anything else is a binding error."""
    if isinstance(value, bool) or value is None:
        raise FormulaBindingError(f"Binding '@{name}' must be a number or formula, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise FormulaBindingError(f"Binding '@{name}' must be a whole number or formula, got {value!r}")
