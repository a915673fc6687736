"""
Roll formula parser.

Supports the formula subset the d20 workflow produces:
- 1d20, 3d6, d8 (dice, count defaults to 1)
- 2d20kh, 3d20kh, 2d20kl, 4d6kh3 (keep highest/lowest)
- 1d20r=1, 1d20r1, 2d20r<2kh (reroll once, before keep)
- 5, @mod, @abilities.str.mod (constants and bound variables)
- {2d20kh, 10}kh (pools: keep the highest/lowest sub-formula total, nested
  at most MAX_POOL_DEPTH deep)
- any of the above joined by + and -
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional, Sequence, Set, Tuple, Union

MAX_DICE = 100
MAX_FACES = 1000
MAX_POOL_DEPTH = 10

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<dice>(?P<number>\d*)d(?P<faces>\d+)(?P<mods>(?:k[hl]\d*|r(?:<=|>=|=|<|>)?\d+)*))
      | (?P<num>\d+)
      | (?P<var>@[A-Za-z_][\w.]*)
      | (?P<op>[+-])
      | (?P<lbrace>\{)
      | (?P<rbrace>\})(?P<pool_keep>k[hl]\d*)?
      | (?P<comma>,)
    )""",
    re.IGNORECASE | re.VERBOSE
)
_MOD_RE = re.compile(r"k(?P<keep>[hl])(?P<count>\d*)|r(?P<cmp><=|>=|=|<|>)?(?P<value>\d+)", re.IGNORECASE)


class DiceNotationError(ValueError):
    """Raised when formula text is malformed or out of range."""
    pass


@dataclass(frozen=True)
class KeepModifier:
    """Keep the highest (or lowest) ``count`` results."""
    highest: bool = True
    count: int = 1

    def __str__(self) -> str:
        suffix = str(self.count) if self.count != 1 else ''
        return f"{'kh' if self.highest else 'kl'}{suffix}"


@dataclass(frozen=True)
class RerollModifier:
    """Reroll a die once when its face satisfies ``comparator value``."""
    comparator: str = '='
    value: int = 1

    def matches(self, face: int) -> bool:
        if self.comparator == '=':
            return face == self.value
        if self.comparator == '<':
            return face < self.value
        if self.comparator == '<=':
            return face <= self.value
        if self.comparator == '>':
            return face > self.value
        return face >= self.value

    def __str__(self) -> str:
        return f"r{self.comparator}{self.value}"


Modifier = Union[KeepModifier, RerollModifier]


@dataclass(frozen=True)
class NumericTerm:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class VariableTerm:
    """A ``@name`` reference, resolved from bindings at evaluation time."""
    name: str

    def __str__(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class DiceTerm:
    number: int
    faces: int
    modifiers: Tuple[Modifier, ...] = ()

    @property
    def keep(self) -> Optional[KeepModifier]:
        for modifier in self.modifiers:
            if isinstance(modifier, KeepModifier):
                return modifier
        return None

    @property
    def reroll(self) -> Optional[RerollModifier]:
        for modifier in self.modifiers:
            if isinstance(modifier, RerollModifier):
                return modifier
        return None

    def __str__(self) -> str:
        return f"{self.number}d{self.faces}" + ''.join(str(m) for m in self.modifiers)


@dataclass(frozen=True)
class PoolTerm:
    """``{f1, f2, ...}kh``: evaluate each formula, keep the best totals."""
    formulas: Tuple['Formula', ...]
    keep: Optional[KeepModifier] = None

    def __str__(self) -> str:
        inner = ','.join(str(f) for f in self.formulas)
        return f"{{{inner}}}{self.keep or ''}"


Term = Union[NumericTerm, VariableTerm, DiceTerm, PoolTerm]


@dataclass(frozen=True)
class FormulaPart:
    """One additive part of a formula: ``sign`` is +1 or -1."""
    sign: int
    term: Term


@dataclass(frozen=True)
class Formula:
    """Ordered, immutable sequence of signed terms combined by addition."""
    parts: Tuple[FormulaPart, ...]

    @classmethod
    def from_parts(cls, parts: Sequence[str]) -> 'Formula':
        """Build a formula from roll parts, e.g. ``['1d20', '@mod', '@prof']``."""
        if not parts:
            raise DiceNotationError("Formula must have at least one part")
        return DiceParser.parse(' + '.join(parts))

    @property
    def variables(self) -> Set[str]:
        """Names of every variable referenced, including inside pools."""
        names = set()
        for part in self.parts:
            if isinstance(part.term, VariableTerm):
                names.add(part.term.name)
            elif isinstance(part.term, PoolTerm):
                for inner in part.term.formulas:
                    names |= inner.variables
        return names

    @property
    def is_deterministic(self) -> bool:
        """True if no dice appear directly in the formula (variables may still hold dice)."""
        for part in self.parts:
            if isinstance(part.term, DiceTerm):
                return False
            if isinstance(part.term, PoolTerm) and not all(f.is_deterministic for f in part.term.formulas):
                return False
        return True

    def __str__(self) -> str:
        pieces = []
        for index, part in enumerate(self.parts):
            if index == 0:
                pieces.append(f"-{part.term}" if part.sign < 0 else str(part.term))
            else:
                pieces.append(f"{'-' if part.sign < 0 else '+'} {part.term}")
        return ' '.join(pieces)


class _Token(NamedTuple):
    kind: str
    match: re.Match


class DiceParser:
    """Parser for roll formulas."""

    @classmethod
    def parse(cls, notation: str) -> Formula:
        """
        Parse formula text into a Formula.

        Examples:
            "1d20 + 5"      → [+1d20, +5]
            "2d20kh + @mod" → [+2d20kh, +@mod]
            "{1d20,10}kh"   → [+{1d20,10}kh]

        Raises:
            DiceNotationError: If notation is invalid
        """
        if not notation or not isinstance(notation, str) or not notation.strip():
            raise DiceNotationError("Formula must be a non-empty string")

        tokens = list(cls._tokenize(notation))
        formula, index = cls._parse_formula(tokens, 0, notation, stops=(), depth=0)
        if index != len(tokens):
            raise DiceNotationError(f"Unexpected '{tokens[index].match.group().strip()}' in '{notation}'")
        return formula

    @classmethod
    def validate(cls, notation: str) -> bool:
        """Check if notation is valid without keeping the result."""
        try:
            cls.parse(notation)
            return True
        except DiceNotationError:
            return False

    @staticmethod
    def _tokenize(notation: str) -> Iterator[_Token]:
        text = notation.rstrip()
        pos = 0
        while pos < len(text):
            match = _TOKEN_RE.match(text, pos)
            if not match or match.end() == pos:
                raise DiceNotationError(f"Invalid formula '{notation}' at '{text[pos:].strip()}'")
            yield _Token(match.lastgroup if match.lastgroup != 'pool_keep' else 'rbrace', match)
            pos = match.end()

    @classmethod
    def _parse_formula(cls, tokens: List[_Token], index: int, notation: str,
                       stops: Tuple[str, ...], depth: int) -> Tuple[Formula, int]:
        parts: List[FormulaPart] = []
        sign = 1
        expect_term = True

        while True:
            token = tokens[index] if index < len(tokens) else None

            if expect_term:
                if token is None or token.kind in stops:
                    if parts:
                        raise DiceNotationError(f"Formula '{notation}' ends with an operator")
                    raise DiceNotationError(f"Empty formula in '{notation}'")
                if token.kind == 'op':
                    if token.match.group('op') == '-':
                        sign = -sign
                    index += 1
                    continue
                term, index = cls._parse_term(tokens, index, notation, depth)
                parts.append(FormulaPart(sign, term))
                sign = 1
                expect_term = False
                continue

            if token is None or token.kind in stops:
                break
            if token.kind != 'op':
                raise DiceNotationError(
                    f"Expected '+' or '-' before '{token.match.group().strip()}' in '{notation}'"
                )
            sign = -1 if token.match.group('op') == '-' else 1
            expect_term = True
            index += 1

        return Formula(tuple(parts)), index

    @classmethod
    def _parse_term(cls, tokens: List[_Token], index: int, notation: str, depth: int) -> Tuple[Term, int]:
        token = tokens[index]
        match = token.match

        if token.kind == 'dice':
            return cls._dice_term(match), index + 1
        if token.kind == 'num':
            return NumericTerm(int(match.group('num'))), index + 1
        if token.kind == 'var':
            return VariableTerm(match.group('var')[1:]), index + 1
        if token.kind == 'lbrace':
            if depth >= MAX_POOL_DEPTH:
                raise DiceNotationError(f"Pools nested deeper than {MAX_POOL_DEPTH} levels in '{notation}'")
            return cls._parse_pool(tokens, index + 1, notation, depth + 1)

        raise DiceNotationError(f"Unexpected '{match.group().strip()}' in '{notation}'")

    @classmethod
    def _parse_pool(cls, tokens: List[_Token], index: int, notation: str, depth: int) -> Tuple[PoolTerm, int]:
        formulas = []
        while True:
            formula, index = cls._parse_formula(tokens, index, notation, stops=('comma', 'rbrace'), depth=depth)
            formulas.append(formula)
            if index >= len(tokens):
                raise DiceNotationError(f"Unclosed '{{' in '{notation}'")
            token = tokens[index]
            index += 1
            if token.kind == 'rbrace':
                break

        keep = None
        keep_text = token.match.group('pool_keep')
        if keep_text:
            keep = cls._keep_modifier(keep_text[1].lower(), keep_text[2:])
            if keep.count > len(formulas):
                raise DiceNotationError(f"Cannot keep {keep.count} of {len(formulas)} pool entries")
        return PoolTerm(tuple(formulas), keep), index

    @classmethod
    def _dice_term(cls, match: re.Match) -> DiceTerm:
        number = int(match.group('number') or 1)
        faces = int(match.group('faces'))

        if number < 1:
            raise DiceNotationError(f"Dice count must be at least 1, got {number}")
        if number > MAX_DICE:
            raise DiceNotationError(f"Dice count too large (max {MAX_DICE}), got {number}")
        if faces < 2:
            raise DiceNotationError(f"Dice must have at least 2 sides, got {faces}")
        if faces > MAX_FACES:
            raise DiceNotationError(f"Dice sides too large (max {MAX_FACES}), got {faces}")

        modifiers: List[Modifier] = []
        for mod in _MOD_RE.finditer(match.group('mods') or ''):
            if mod.group('keep'):
                keep = cls._keep_modifier(mod.group('keep').lower(), mod.group('count'))
                if keep.count > number:
                    raise DiceNotationError(f"Cannot keep {keep.count} of {number} dice")
                modifiers.append(keep)
            else:
                modifiers.append(RerollModifier(mod.group('cmp') or '=', int(mod.group('value'))))

        # Rerolls resolve before keep regardless of written order
        modifiers.sort(key=lambda m: isinstance(m, KeepModifier))
        return DiceTerm(number, faces, tuple(modifiers))

    @staticmethod
    def _keep_modifier(direction: str, count_text: str) -> KeepModifier:
        count = int(count_text) if count_text else 1
        if count < 1:
            raise DiceNotationError("Keep count must be at least 1")
        return KeepModifier(highest=(direction == 'h'), count=count)
