"""
Unit tests for DiceRoller and RollOutcome.
"""

from dataclasses import FrozenInstanceError

import pytest
from fudgeroll.modules.rng.dice_parser import (
    MAX_POOL_DEPTH,
    DiceNotationError,
    DiceParser,
    Formula,
    FormulaPart,
    PoolTerm,
)
from fudgeroll.modules.rng.roller import (
    DiceRoller,
    EvaluationMode,
    FormulaBindingError,
    FormulaError,
    UnboundVariableError,
)


class TestEvaluation:
    """Random evaluation with a seeded roller."""

    def test_simple_roll(self):
        roller = DiceRoller(seed=42)
        outcome = roller.roll("1d20")

        assert outcome.formula == "1d20"
        assert 1 <= outcome.total <= 20
        assert outcome.mode is EvaluationMode.RANDOM
        assert len(outcome.dice) == 1
        assert len(outcome.dice[0].results) == 1

    def test_roll_with_modifier(self):
        roller = DiceRoller(seed=42)
        outcome = roller.roll("1d20 + 5")
        assert outcome.total == outcome.dice[0].total + 5

    def test_subtraction(self):
        roller = DiceRoller(seed=7)
        outcome = roller.roll("1d20 - 1d4 - 2")
        d20, d4 = outcome.dice
        assert outcome.total == d20.total - d4.total - 2

    def test_multiple_dice(self):
        roller = DiceRoller(seed=42)
        outcome = roller.roll("3d6")
        assert len(outcome.dice[0].results) == 3
        assert all(1 <= face.result <= 6 for face in outcome.dice[0].results)

    def test_bindings(self):
        roller = DiceRoller(seed=42)
        outcome = roller.roll("1d20 + @mod + @prof", {"mod": 3, "prof": 2})
        assert outcome.total == outcome.dice[0].total + 5

    def test_dotted_binding(self):
        roller = DiceRoller(seed=42)
        outcome = roller.maximize("1d20 + @abilities.dex.mod", {"abilities": {"dex": {"mod": 4}}})
        assert outcome.total == 24

    def test_formula_valued_binding(self):
        roller = DiceRoller(seed=42)
        outcome = roller.roll("1d20 + @bonus", {"bonus": "1d4 + 1"})
        assert len(outcome.dice) == 2
        d20, d4 = outcome.dice
        assert outcome.total == d20.total + d4.total + 1

    def test_blank_formula_binding_is_zero(self):
        outcome = DiceRoller(seed=1).maximize("1d20 + @bonus", {"bonus": "  "})
        assert outcome.total == 20

    def test_integral_float_binding(self):
        outcome = DiceRoller().maximize("1d20 + @mod", {"mod": 2.0})
        assert outcome.total == 22

    def test_unbound_variable(self):
        roller = DiceRoller(seed=42)
        with pytest.raises(UnboundVariableError) as exc:
            roller.roll("1d20 + @mod", {})
        assert exc.value.name == "mod"

    def test_unbound_dotted_variable(self):
        with pytest.raises(UnboundVariableError):
            DiceRoller().roll("@abilities.str.mod", {"abilities": {"dex": {"mod": 1}}})

    @pytest.mark.parametrize("value", [None, True, 1.5, {"a": 1}, [1]])
    def test_unusable_binding(self, value):
        with pytest.raises(FormulaBindingError):
            DiceRoller().roll("1d20 + @mod", {"mod": value})

    def test_self_referencing_binding(self):
        with pytest.raises(FormulaBindingError):
            DiceRoller().roll("@a", {"a": "@a"})

    def test_invalid_notation(self):
        with pytest.raises(DiceNotationError):
            DiceRoller().roll("1d20 +")

    @pytest.mark.parametrize("bindings", ["abc", [1], 5])
    @pytest.mark.parametrize("formula", ["1d20 + @mod", "1d20 + 5"])
    def test_bindings_must_be_a_mapping(self, formula, bindings):
        with pytest.raises(FormulaBindingError):
            DiceRoller(seed=1).roll(formula, bindings)

    def test_built_pools_nested_too_deep(self):
        formula = DiceParser.parse("{" * MAX_POOL_DEPTH + "1d4" + "}" * MAX_POOL_DEPTH)
        assert 1 <= DiceRoller(seed=1).roll(formula).total <= 4

        deeper = Formula((FormulaPart(1, PoolTerm((formula,))),))
        with pytest.raises(FormulaError, match="nested"):
            DiceRoller(seed=1).roll(deeper)
        with pytest.raises(FormulaError):
            DiceRoller().maximize(deeper)

    def test_seeded_determinism(self):
        first = DiceRoller(seed=12345).roll("3d6 + 5")
        second = DiceRoller(seed=12345).roll("3d6 + 5")
        assert first.total == second.total
        assert first.dice[0].values == second.dice[0].values


class TestKeepAndReroll:
    def test_keep_highest(self):
        outcome = DiceRoller(seed=42).roll("2d20kh")
        dice = outcome.dice[0]
        assert len(dice.results) == 2
        assert len(dice.values) == 1
        assert dice.values[0] == max(face.result for face in dice.results)
        assert sum(1 for face in dice.results if face.discarded) == 1

    def test_keep_lowest(self):
        outcome = DiceRoller(seed=42).roll("2d20kl")
        dice = outcome.dice[0]
        assert dice.values[0] == min(face.result for face in dice.results)

    def test_reroll_once(self):
        # r>=1 always triggers, so every die is rolled twice
        outcome = DiceRoller(seed=3).roll("3d6r>=1")
        dice = outcome.dice[0]
        assert len(dice.results) == 6
        assert sum(1 for face in dice.results if face.rerolled) == 3
        assert len(dice.values) == 3

    def test_pool_keeps_highest_total(self):
        outcome = DiceRoller(seed=42).roll("{1d20,10}kh")
        pool = outcome.terms[0]
        assert outcome.total == max(pool.outcomes[0].total, 10)
        assert sum(pool.kept) == 1

    def test_pool_dice_are_reachable(self):
        outcome = DiceRoller(seed=42).roll("{2d20kh,10}kh + 3")
        assert len(outcome.dice) == 1
        assert outcome.dice[0].faces == 20


class TestBounds:
    """Minimize and maximize are deterministic."""

    @pytest.mark.parametrize("formula,bindings,low,high", [
        ("1d20 + 5", {}, 6, 25),
        ("2d20kh + 3", {}, 4, 23),
        ("3d20kl", {}, 1, 20),
        ("1d20r=1", {}, 1, 20),
        ("{2d20kh,10}kh + @mod", {"mod": 4}, 14, 24),
        ("1d20 - 1d4", {}, -3, 19),
        ("2d6 - @pen", {"pen": "1d4"}, -2, 11),
        ("@mod", {"mod": 3}, 3, 3),
    ])
    def test_min_max(self, formula, bindings, low, high):
        roller = DiceRoller()
        assert roller.minimize(formula, bindings).total == low
        assert roller.maximize(formula, bindings).total == high

    def test_bounds_consume_no_randomness(self):
        roller = DiceRoller(seed=99)
        reference = DiceRoller(seed=99)
        for _ in range(3):
            roller.minimize("4d6kh3 + 2")
            roller.maximize("4d6kh3 + 2")
        assert roller.roll("1d100").total == reference.roll("1d100").total

    def test_random_within_bounds(self):
        roller = DiceRoller(seed=5)
        for formula in ("1d20 + 5", "2d20kh + 3", "{1d20r=1,10}kh - 1d4", "4d6kh3"):
            low = roller.minimize(formula).total
            high = roller.maximize(formula).total
            for _ in range(200):
                assert low <= roller.roll(formula).total <= high


class TestRollOutcome:
    def test_outcome_is_frozen(self):
        outcome = DiceRoller(seed=1).roll("1d20")
        with pytest.raises(FrozenInstanceError):
            outcome.total = 5

    def test_with_d20_options_returns_copy(self):
        outcome = DiceRoller().maximize("1d20 + 1d6")
        marked = outcome.with_d20_options(critical=19, fumble=2, target=15)

        assert marked is not outcome
        assert outcome.dice[0].options.critical is None
        d20, d6 = marked.dice
        assert d20.options.critical == 19
        assert d20.options.fumble == 2
        assert d20.options.target == 15
        assert d6.options.critical is None

    def test_critical_marks_inside_pools(self):
        outcome = DiceRoller().maximize("{2d20kh,10}kh").with_d20_options()
        assert outcome.is_critical
        assert not outcome.is_fumble

    def test_fumble(self):
        outcome = DiceRoller().minimize("1d20 + 5").with_d20_options()
        assert outcome.is_fumble
        assert not outcome.is_critical

    def test_unmarked_dice_are_never_critical(self):
        assert not DiceRoller().maximize("1d20").is_critical

    def test_breakdown(self):
        outcome = DiceRoller(seed=42).roll("2d6 + 3")
        breakdown = outcome.get_breakdown()
        assert "2d6" in breakdown
        assert "+3" in breakdown
        assert f"**Total: {outcome.total}**" in breakdown

    def test_breakdown_marks_critical(self):
        outcome = DiceRoller().maximize("1d20").with_d20_options()
        assert "CRITICAL SUCCESS" in outcome.get_breakdown()

    def test_to_dict(self):
        outcome = DiceRoller(seed=42).roll("1d20 + @mod", {"mod": 5})
        data = outcome.to_dict()
        assert data['formula'] == "1d20 + @mod"
        assert data['total'] == outcome.total
        assert data['mode'] == 'random'
        assert data['attempts'] == 1
        assert data['seek_target'] is None
        assert 'breakdown' in data
        assert [t['kind'] for t in data['terms']] == ['dice', 'variable']
