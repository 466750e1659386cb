"""trip-exec command line: simulate a day or validate an itinerary file."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from tripexec.config.settings import resolve_constraint_config, resolve_engine_settings
from tripexec.domain.constraints import ConstraintEngine
from tripexec.domain.enums import Weather
from tripexec.domain.models import Day, Itinerary
from tripexec.simulation.sample_day import generate_sample_day
from tripexec.simulation.simulator import SimulatorConfig, run_multiple_simulations, run_simulation

load_dotenv()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trip-exec", description="Travel day execution tooling")
    commands = parser.add_subparsers(dest="command", required=True)

    simulate = commands.add_parser("simulate", help="Replay a day with random diversions")
    simulate.add_argument("--day", default="", help="Day JSON file (defaults to the built-in Tokyo sample)")
    simulate.add_argument("--seed", type=int, default=None, help="PRNG seed for reproducible runs")
    simulate.add_argument("--runs", type=int, default=1, help="Number of runs to aggregate")
    simulate.add_argument("--weather", choices=[item.value for item in Weather], default=None)
    simulate.add_argument("--energy", type=float, default=None, help="Traveler energy between 0 and 1")
    simulate.add_argument("--json", action="store_true", help="Print the full result as JSON")

    validate = commands.add_parser("validate", help="Run constraint layers over an itinerary")
    validate.add_argument("itinerary", help="Itinerary JSON file")
    validate.add_argument("--strict", action="store_true", help="Treat warnings as blocking")
    return parser


def _simulate(args: argparse.Namespace) -> int:
    day = Day.model_validate_json(Path(args.day).read_text(encoding="utf-8")) if args.day else generate_sample_day()
    seed = args.seed if args.seed is not None else resolve_engine_settings().simulation_seed
    config = SimulatorConfig(seed=seed, weather=args.weather, traveler_energy=args.energy)

    if args.runs > 1:
        multi = run_multiple_simulations(day, args.runs, config)
        if args.json:
            print(multi.model_dump_json(indent=2))
        else:
            print(multi.aggregated.model_dump_json(indent=2))
        return 0

    result = run_simulation(day, config)
    if args.json:
        print(result.model_dump_json(indent=2))
        return 0
    print(f"Day {result.day_number} simulation (seed {result.seed})")
    print("=" * 50)
    for line in result.timeline:
        print(line)
    print("-" * 50)
    print(json.dumps(result.summary.model_dump(mode="json"), ensure_ascii=False, indent=2))
    return 0


def _validate(args: argparse.Namespace) -> int:
    itinerary = Itinerary.model_validate_json(Path(args.itinerary).read_text(encoding="utf-8"))
    config = resolve_constraint_config()
    if args.strict:
        config = config.model_copy(update={"strict_mode": True})
    analysis = ConstraintEngine.default(config).validate_itinerary(itinerary)
    print(analysis.model_dump_json(indent=2))
    return 0 if analysis.feasible else 1


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == "simulate":
        return _simulate(args)
    return _validate(args)


if __name__ == "__main__":
    sys.exit(main())
