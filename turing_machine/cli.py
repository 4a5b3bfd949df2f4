from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

import yaml

from .catalog import BUILTIN_MACHINES
from .config_loader import MachineDefinition, MachineValidationError, load_machine, validate_input
from .machine import MachineResult

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Deterministic single-tape Turing machine simulator driven by YAML definitions",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("config", type=Path, nargs="?", help="Path to the YAML machine definition")
    source.add_argument(
        "--builtin",
        choices=sorted(BUILTIN_MACHINES),
        help="Run one of the bundled example machines instead of a YAML file",
    )
    parser.add_argument(
        "--string",
        "-s",
        dest="strings",
        action="append",
        help="Input string to simulate. May be repeated",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=10_000,
        help="Maximum number of transitions before the simulation is stopped",
    )
    parser.add_argument(
        "--stop-on-accept",
        action="store_true",
        help="Halt as soon as an accepting state is entered",
    )
    parser.add_argument(
        "--no-ids",
        dest="capture_ids",
        action="store_false",
        help="Do not print the configurations of each step",
    )
    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit the results as JSON for post-processing",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity of the diagnostic log written to stderr",
    )
    return parser


def _load(parser: argparse.ArgumentParser, args: argparse.Namespace) -> MachineDefinition:
    if args.builtin is not None:
        return MachineDefinition(machine=BUILTIN_MACHINES[args.builtin](), simulation_strings=[""])
    if args.config is None:
        parser.error("Give a YAML definition or choose a machine with --builtin")
    try:
        return load_machine(args.config)
    except (OSError, yaml.YAMLError, MachineValidationError) as error:
        parser.error(f"Could not load {args.config}: {error}")


def _result_payload(result: MachineResult, capture_ids: bool) -> dict:
    return {
        "accepted": result.accepted,
        "halted": result.halted,
        "reason": result.reason,
        "steps": result.steps,
        "final": result.final.to_dict(),
        "configurations": [c.to_dict() for c in result.configurations] if capture_ids else [],
    }


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.max_steps < 0:
        parser.error("--max-steps must not be negative")

    definition = _load(parser, args)
    machine = definition.machine
    strings = args.strings if args.strings is not None else definition.simulation_strings
    if not strings:
        parser.error(
            "No input strings to simulate. Add 'simulation_strings' to the YAML or use --string",
        )
    for string in strings:
        try:
            validate_input(machine, string)
        except MachineValidationError as error:
            parser.error(str(error))

    results = {}
    for string in strings:
        logger.info("Simulating %r for at most %d steps", string, args.max_steps)
        results[string] = machine.run(
            machine.tape_from_string(string),
            max_steps=args.max_steps,
            stop_on_accept=args.stop_on_accept,
            capture=args.capture_ids,
        )

    if args.json_output:
        payload = {
            string: _result_payload(result, args.capture_ids) for string, result in results.items()
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    for string, result in results.items():
        header = f"Input '{string}'"
        print("=" * len(header))
        print(header)
        print("=" * len(header))
        print(f"Accepted: {'yes' if result.accepted else 'no'}")
        print(f"Reason: {result.reason}")
        print(f"Steps: {result.steps}")
        if args.capture_ids:
            print("Configurations:")
            for step, configuration in enumerate(result.configurations):
                print(f"  {step:04d}  {configuration}")
        else:
            print(f"Final: {result.final}")
        print()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
