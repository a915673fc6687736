#!/usr/bin/env python3
"""
Command-line interface for Fudge Roll.

Provides commands for seeking targets on bare formulas, inspecting formula
ranges, fudging checks from a character sheet file, and serving the web API.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from fudgeroll.core.config import get_config
from fudgeroll.core.logging_config import setup_logging_from_config
from fudgeroll.core.result import Result
from fudgeroll.modules.fudge import FudgeModule
from fudgeroll.modules.rng.roller import DiceRoller
from fudgeroll.modules.rng.roll_types import ATTACK, SKILL_CHECK, roll_types_by_name


def parse_bindings(pairs: List[str]) -> Dict[str, Any]:
    """
    Parse ``name=value`` pairs. Integer values become ints, anything else
    stays formula text.

    Examples:
        ['mod=5', 'bonus=1d4'] → {'mod': 5, 'bonus': '1d4'}
    """
    bindings: Dict[str, Any] = {}
    for pair in pairs or []:
        name, sep, value = pair.partition('=')
        if not sep or not name.strip():
            raise ValueError(f"Binding must look like name=value, got '{pair}'")
        value = value.strip()
        try:
            bindings[name.strip()] = int(value)
        except ValueError:
            bindings[name.strip()] = value
    return bindings


def build_module(args) -> FudgeModule:
    config = get_config()
    module = FudgeModule.from_config(config)
    if getattr(args, 'seed', None) is not None:
        module.seeker.roller = DiceRoller(seed=args.seed)
    return module


def fail(result: Result):
    print(f"✗ Error: {result.error}", file=sys.stderr)
    sys.exit(1)


def cmd_formula(args):
    """Seek a target on a formula."""
    try:
        bindings = parse_bindings(args.bind)
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)

    module = build_module(args)
    result = module.seek_formula(args.formula, bindings, args.target)
    if not result:
        fail(result)

    outcome = result.data
    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
        return

    print(f"✓ {outcome.formula} = {outcome.total}")
    print(f"  {outcome.get_breakdown()}")
    if outcome.seek_target is not None:
        print(f"  Attempts: {outcome.attempts}")


def cmd_range(args):
    """Print a formula's achievable range."""
    try:
        bindings = parse_bindings(args.bind)
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)

    result = build_module(args).formula_range(args.formula, bindings)
    if not result:
        fail(result)

    if args.json:
        print(json.dumps(result.data))
    else:
        print(f"{args.formula}: {result.data['min']}..{result.data['max']}")


def cmd_roll(args):
    """Fudge a check for the character in a sheet file."""
    try:
        sheet = json.loads(Path(args.sheet).read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Error: Could not read character sheet {args.sheet}: {e}", file=sys.stderr)
        sys.exit(1)

    roll_type = roll_types_by_name()[args.roll_type]
    request: Dict[str, Any] = {
        'roll_type': args.roll_type,
        'advantage': args.advantage,
        'chat_message': False,
    }
    if args.selection:
        request[roll_type.selection] = args.selection
    elif args.roll_type != ATTACK:
        what = 'skill' if args.roll_type == SKILL_CHECK else 'ability'
        print(f"✗ Error: {args.roll_type} needs a {what}", file=sys.stderr)
        sys.exit(1)
    if args.target is not None:
        request['target'] = args.target
    if args.dc is not None:
        request['target_value'] = args.dc
    if args.bonus:
        request['bonus'] = args.bonus

    result = build_module(args).fudge_json(request, sheet)
    if not result:
        fail(result)

    roll = result.data
    if args.json:
        print(json.dumps(roll.to_dict(), indent=2))
        return

    print(f"✓ {roll.flavor}: {roll.total}")
    print(f"  Formula: {roll.formula}")
    print(f"  {roll.outcome.get_breakdown()}")


def cmd_serve(args):
    """Run the web API."""
    from fudgeroll.web.server import create_app

    config = get_config()
    app = create_app(config)
    app.run(host=args.host or config.host, port=args.port or config.port, debug=config.debug)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Fudge Roll - d20 rolls that land on the total you choose',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Roll 1d20 + 5 until it shows 17
  fudge formula "1d20 + @mod" --bind mod=5 --target 17

  # Achievable range of a formula
  fudge range "2d20kh + 3"

  # Stealth check with advantage that lands on 18
  fudge roll sheet.json skill_check ste --target 18 --advantage

  # Attack with the last used item
  fudge roll sheet.json attack --target 15
        """
    )
    parser.add_argument('--seed', type=int, help='Seed the dice for repeatable output')
    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # ========== formula command ==========
    parser_formula = subparsers.add_parser('formula', help='Seek a target on a formula')
    parser_formula.add_argument('formula', help='Roll formula, e.g. "1d20 + @mod"')
    parser_formula.add_argument('--bind', action='append', default=[], metavar='NAME=VALUE',
                                help='Variable binding (repeatable)')
    parser_formula.add_argument('--target', type=int, help='Total to seek (default: maximize)')
    parser_formula.add_argument('--json', action='store_true', help='Print JSON')
    parser_formula.set_defaults(func=cmd_formula)

    # ========== range command ==========
    parser_range = subparsers.add_parser('range', help="Show a formula's min and max")
    parser_range.add_argument('formula', help='Roll formula')
    parser_range.add_argument('--bind', action='append', default=[], metavar='NAME=VALUE',
                              help='Variable binding (repeatable)')
    parser_range.add_argument('--json', action='store_true', help='Print JSON')
    parser_range.set_defaults(func=cmd_range)

    # ========== roll command ==========
    parser_roll = subparsers.add_parser('roll', help='Fudge a check from a character sheet')
    parser_roll.add_argument('sheet', help='Path to character sheet JSON')
    parser_roll.add_argument('roll_type', choices=sorted(roll_types_by_name()), help='Roll kind')
    parser_roll.add_argument('selection', nargs='?',
                             help='Skill id, ability id or item id (attack defaults to last used item)')
    parser_roll.add_argument('--target', type=int, help='Total to seek (default: maximize)')
    parser_roll.add_argument('--dc', type=int, help='Difficulty class recorded on the d20')
    parser_roll.add_argument('--bonus', help='Situational bonus, e.g. "1d4" or 2')
    mode = parser_roll.add_mutually_exclusive_group()
    mode.add_argument('--advantage', dest='advantage', action='store_const', const='advantage',
                      default='normal', help='Roll with advantage')
    mode.add_argument('--disadvantage', dest='advantage', action='store_const', const='disadvantage',
                      help='Roll with disadvantage')
    parser_roll.add_argument('--json', action='store_true', help='Print JSON')
    parser_roll.set_defaults(func=cmd_roll)

    # ========== serve command ==========
    parser_serve = subparsers.add_parser('serve', help='Run the web API')
    parser_serve.add_argument('--host', help='Bind address (default: HOST)')
    parser_serve.add_argument('--port', type=int, help='Port (default: PORT)')
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging_from_config(get_config())
    args.func(args)


if __name__ == '__main__':
    main()
