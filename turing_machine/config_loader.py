from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

import yaml

from .machine import Direction, Machine, State, Symbol

logger = logging.getLogger(__name__)


class MachineValidationError(ValueError):
    """Raised when a machine description breaks its structural invariants."""


@dataclass(frozen=True)
class MachineDefinition:
    """A machine loaded from YAML together with the inputs it ships with."""

    machine: Machine
    simulation_strings: List[str] = field(default_factory=list)


def _joined(values: Iterable) -> str:
    return ", ".join(sorted(str(value) for value in values))


def validate_machine(machine: Machine) -> None:
    """Reject descriptions the execution engine would run incorrectly."""

    if not machine.states:
        raise MachineValidationError("At least one state is required.")
    if machine.initial_state not in machine.states:
        raise MachineValidationError(
            f"Initial state {machine.initial_state} is not one of the states."
        )
    unknown_states = machine.accepting_states - machine.states
    if unknown_states:
        raise MachineValidationError(
            f"Accepting states {_joined(unknown_states)} are not among the states."
        )
    if machine.blank_symbol not in machine.tape_alphabet:
        raise MachineValidationError(
            f"Blank symbol {machine.blank_symbol} is not in the tape alphabet."
        )
    unknown_symbols = machine.input_alphabet - machine.tape_alphabet
    if unknown_symbols:
        raise MachineValidationError(
            f"Input symbols {_joined(unknown_symbols)} are not in the tape alphabet."
        )

    for (state, read_symbol), output in machine.transition_function.items():
        next_state, write_symbol, direction = output
        label = f"({state}, {read_symbol})"
        if state not in machine.states or next_state not in machine.states:
            raise MachineValidationError(f"Transition {label} uses an unknown state.")
        if read_symbol not in machine.tape_alphabet or write_symbol not in machine.tape_alphabet:
            raise MachineValidationError(f"Transition {label} uses an unknown symbol.")
        if not isinstance(direction, Direction):
            raise MachineValidationError(
                f"Transition {label} has invalid direction {direction!r}."
            )


def validate_input(machine: Machine, text: str) -> None:
    """Check that an input string only uses the input alphabet."""

    for char in text:
        if Symbol(char) not in machine.input_alphabet:
            raise MachineValidationError(
                f"Input {text!r} uses {char!r}, which is not in the input alphabet."
            )


def _normalize_config(data: Dict) -> Dict:
    """Accept definitions with or without a top-level 'machine' node."""

    if "machine" in data and isinstance(data["machine"], dict):
        return data["machine"]
    return data


_KEPT_TAGS = {"tag:yaml.org,2002:null", "tag:yaml.org,2002:merge"}


class _DefinitionLoader(yaml.SafeLoader):
    """Safe loader that reads plain scalars such as ``yes`` or ``010`` as strings."""


_DefinitionLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag in _KEPT_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _token(value: Any, where: str) -> str:
    # Documents built in Python, or read with yaml.safe_load, may hold 0/1 as integers.
    if isinstance(value, bool):
        raise MachineValidationError(f"{where} holds the boolean {value!r}; quote the token.")
    if isinstance(value, (str, int)):
        return str(value)
    raise MachineValidationError(f"{where} must be a string token, got {value!r}.")


def _tokens(values: Any, where: str) -> List[str]:
    if values is None:
        return []
    if not isinstance(values, list):
        values = [values]
    return [_token(value, where) for value in values]


def parse_machine(raw_data: Any) -> MachineDefinition:
    """Build and validate a machine from an already-parsed YAML document."""

    if not isinstance(raw_data, dict):
        raise MachineValidationError("The YAML document must be a mapping.")

    config = _normalize_config(raw_data)

    def require(key: str) -> Dict:
        if key not in config or not isinstance(config[key], dict):
            raise MachineValidationError(f"The '{key}' block is required and must be a mapping.")
        return config[key]

    q_states = require("q_states")
    q_list = _tokens(q_states.get("q_list"), "'q_states.q_list'")
    if not q_list:
        raise MachineValidationError("'q_states.q_list' must name at least one state.")
    if q_states.get("initial") is None:
        raise MachineValidationError("'q_states.initial' is required.")
    initial_state = _token(q_states["initial"], "'q_states.initial'")
    final_states = _tokens(q_states.get("final"), "'q_states.final'")

    alphabet_block = require("alphabet")
    input_alphabet = _tokens(alphabet_block.get("input"), "'alphabet.input'")
    tape_alphabet = _tokens(alphabet_block.get("tape"), "'alphabet.tape'")
    if not tape_alphabet:
        raise MachineValidationError("'alphabet.tape' must list the tape symbols.")

    blank_symbol = config.get("blank", alphabet_block.get("blank"))
    if blank_symbol is None:
        raise MachineValidationError("A blank symbol must be given with 'blank'.")
    blank_symbol = _token(blank_symbol, "'blank'")

    transition_block = config.get("delta") or []
    if not isinstance(transition_block, list):
        raise MachineValidationError("The 'delta' block must be a list of transitions.")

    transition_function = {}
    valid_movements = {direction.value for direction in Direction}
    for index, raw_transition in enumerate(transition_block):
        params = raw_transition.get("params") if isinstance(raw_transition, dict) else None
        output = raw_transition.get("output") if isinstance(raw_transition, dict) else None
        if not isinstance(params, dict) or not isinstance(output, dict):
            raise MachineValidationError(
                f"Transition #{index} must have 'params' and 'output' mappings."
            )

        movement = output.get("tape_displacement")
        if not isinstance(movement, str) or movement not in valid_movements:
            raise MachineValidationError(
                f"Invalid movement in transition #{index}: {movement!r}. "
                f"Allowed values: {sorted(valid_movements)}."
            )

        where = f"Transition #{index}"
        key = (
            State(_token(params.get("initial_state"), f"{where} 'initial_state'")),
            Symbol(_token(params.get("tape_input"), f"{where} 'tape_input'")),
        )
        if key in transition_function:
            raise MachineValidationError(
                f"Transition #{index} repeats ({key[0]}, {key[1]}); the machine must be deterministic."
            )
        transition_function[key] = (
            State(_token(output.get("final_state"), f"{where} 'final_state'")),
            Symbol(_token(output.get("tape_output"), f"{where} 'tape_output'")),
            Direction(movement),
        )

    machine = Machine(
        states=frozenset(State(name) for name in q_list),
        tape_alphabet=frozenset(Symbol(value) for value in tape_alphabet),
        blank_symbol=Symbol(blank_symbol),
        input_alphabet=frozenset(Symbol(value) for value in input_alphabet),
        initial_state=State(initial_state),
        accepting_states=frozenset(State(name) for name in final_states),
        transition_function=transition_function,
    )
    validate_machine(machine)

    simulation_strings = raw_data.get("simulation_strings") or config.get("simulation_strings") or []
    if not isinstance(simulation_strings, list):
        simulation_strings = [simulation_strings]
    simulation_strings = [
        "" if value is None else _token(value, "'simulation_strings'")
        for value in simulation_strings
    ]

    return MachineDefinition(machine=machine, simulation_strings=simulation_strings)


def load_machine(path: str | Path) -> MachineDefinition:
    """Load and validate the YAML file describing a machine."""

    with Path(path).open("r", encoding="utf-8") as handle:
        raw_data = yaml.load(handle, Loader=_DefinitionLoader)

    definition = parse_machine(raw_data)
    logger.info(
        "Loaded machine from %s with %d states and %d transitions",
        path,
        len(definition.machine.states),
        len(definition.machine.transition_function),
    )
    return definition


def machine_to_dict(machine: Machine, simulation_strings: Sequence[str] = ()) -> Dict[str, Any]:
    def names(values: Iterable) -> List[str]:
        return sorted(str(value) for value in values)

    delta = []
    for (state, read_symbol), (next_state, write_symbol, direction) in sorted(
        machine.transition_function.items(),
        key=lambda item: (item[0][0].name, item[0][1].value),
    ):
        delta.append(
            {
                "params": {"initial_state": state.name, "tape_input": read_symbol.value},
                "output": {
                    "final_state": next_state.name,
                    "tape_output": write_symbol.value,
                    "tape_displacement": direction.value,
                },
            }
        )

    data: Dict[str, Any] = {
        "q_states": {
            "q_list": names(machine.states),
            "initial": machine.initial_state.name,
            "final": names(machine.accepting_states),
        },
        "alphabet": {
            "input": names(machine.input_alphabet),
            "tape": names(machine.tape_alphabet),
        },
        "blank": machine.blank_symbol.value,
        "delta": delta,
    }
    if simulation_strings:
        data["simulation_strings"] = list(simulation_strings)
    return data


def dump_machine(machine: Machine, simulation_strings: Sequence[str] = ()) -> str:
    """Serialise a machine to YAML that ``load_machine`` reads back unchanged."""

    return yaml.safe_dump(
        machine_to_dict(machine, simulation_strings),
        sort_keys=False,
        allow_unicode=True,
    )


def save_machine(
    machine: Machine,
    path: str | Path,
    simulation_strings: Sequence[str] = (),
) -> None:
    Path(path).write_text(dump_machine(machine, simulation_strings), encoding="utf-8")
    logger.debug("Saved machine to %s", path)
