from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class State:
    """Control state of the machine."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Symbol:
    """Tape alphabet symbol."""

    value: str

    def __str__(self) -> str:
        return self.value


class Direction(Enum):
    LEFT = "L"
    RIGHT = "R"


TransitionFunction = Mapping[Tuple[State, Symbol], Tuple[State, Symbol, Direction]]


@dataclass(frozen=True)
class Configuration:
    """Snapshot of the machine: current state, head index and tape contents.

    ``tape`` is a tuple so a configuration handed to a consumer can never be
    altered by later steps of the run that produced it.
    """

    state: State
    head: int
    tape: Tuple[Symbol, ...]

    def symbol(self) -> Symbol:
        return self.tape[self.head]

    def render(self) -> str:
        """Symbols left of the head, then the state, then the rest of the tape."""

        left = "".join(str(symbol) for symbol in self.tape[: self.head])
        right = "".join(str(symbol) for symbol in self.tape[self.head :])
        return f"{left}{self.state}{right}"

    def __str__(self) -> str:
        return self.render()

    @classmethod
    def parse(cls, text: str, states: Iterable[State]) -> "Configuration":
        """Rebuild a configuration from its rendering.

        Only single-character tokens can be recovered: the state marker is the
        one character of ``text`` that names a state.
        """

        by_name = {state.name: state for state in states}
        markers = [index for index, char in enumerate(text) if char in by_name]
        if len(markers) != 1:
            raise ValueError(
                f"Expected exactly one state marker in {text!r}, found {len(markers)}."
            )
        head = markers[0]
        tape = tuple(Symbol(char) for char in text[:head] + text[head + 1 :])
        if head >= len(tape):
            raise ValueError(f"State marker in {text!r} is not followed by a tape cell.")
        return cls(state=by_name[text[head]], head=head, tape=tape)

    def to_dict(self) -> Dict[str, object]:
        return {
            "state": self.state.name,
            "head": self.head,
            "tape": [symbol.value for symbol in self.tape],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Configuration":
        return cls(
            state=State(str(data["state"])),
            head=int(data["head"]),
            tape=tuple(Symbol(str(value)) for value in data["tape"]),
        )


class Tape:
    """Two-way tape buffer that grows one blank cell at a time at either end.

    Cells left of the original first cell live in ``_left`` nearest-first, so
    growth on both sides is a list append and nothing is ever shifted.
    """

    def __init__(self, blank_symbol: Symbol, cells: Iterable[Symbol]) -> None:
        self.blank_symbol = blank_symbol
        self._left: List[Symbol] = []
        self._right: List[Symbol] = list(cells)
        if not self._right:
            raise ValueError("The initial tape must contain at least one cell.")
        self.head = 0

    def __len__(self) -> int:
        return len(self._left) + len(self._right)

    def _locate(self, index: int) -> Tuple[List[Symbol], int]:
        offset = index - len(self._left)
        if offset >= 0:
            return self._right, offset
        return self._left, -offset - 1

    def __getitem__(self, index: int) -> Symbol:
        cells, position = self._locate(index)
        return cells[position]

    def __setitem__(self, index: int, symbol: Symbol) -> None:
        cells, position = self._locate(index)
        cells[position] = symbol

    def read(self) -> Symbol:
        return self[self.head]

    def write(self, symbol: Symbol) -> None:
        self[self.head] = symbol

    def move(self, direction: Direction) -> None:
        if direction is Direction.RIGHT:
            if self.head == len(self) - 1:
                self._right.append(self.blank_symbol)
            self.head += 1
        elif self.head == 0:
            # The new cell becomes index 0, so the head stays put.
            self._left.append(self.blank_symbol)
        else:
            self.head -= 1

    def snapshot(self) -> Tuple[Symbol, ...]:
        return tuple(reversed(self._left)) + tuple(self._right)


class ConfigurationIterator:
    """Lazily applies one transition per ``next()`` call.

    The initial configuration is available as ``configuration`` but is not
    yielded. Iteration stops the first time the transition function has no
    entry for the current state and the symbol under the head; after that the
    iterator stays exhausted.
    """

    def __init__(
        self,
        transition_function: TransitionFunction,
        blank_symbol: Symbol,
        initial_state: State,
        tape: Iterable[Symbol],
    ) -> None:
        self._transition_function = transition_function
        self._tape = Tape(blank_symbol, tape)
        self._state = initial_state
        self.steps = 0
        self.halted = False
        self.configuration = Configuration(
            state=initial_state,
            head=self._tape.head,
            tape=self._tape.snapshot(),
        )

    def __iter__(self) -> Iterator[Configuration]:
        return self

    def __next__(self) -> Configuration:
        if self.halted:
            raise StopIteration

        symbol = self._tape.read()
        output = self._transition_function.get((self._state, symbol))
        if output is None:
            self.halted = True
            logger.debug(
                "Halted in state %s reading %s after %d steps",
                self._state,
                symbol,
                self.steps,
            )
            raise StopIteration

        next_state, write_symbol, direction = output
        self._tape.write(write_symbol)
        self._tape.move(direction)
        self._state = next_state
        self.steps += 1

        self.configuration = Configuration(
            state=next_state,
            head=self._tape.head,
            tape=self._tape.snapshot(),
        )
        return self.configuration


@dataclass
class MachineResult:
    """Outcome of a bounded run."""

    accepted: bool
    halted: bool
    reason: str
    steps: int
    final: Configuration
    configurations: List[Configuration] = field(default_factory=list)


@dataclass(frozen=True)
class Machine:
    """Immutable description of a deterministic single-tape Turing machine."""

    states: FrozenSet[State]
    tape_alphabet: FrozenSet[Symbol]
    blank_symbol: Symbol
    input_alphabet: FrozenSet[Symbol]
    initial_state: State
    accepting_states: FrozenSet[State]
    transition_function: TransitionFunction = field(hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "states", frozenset(self.states))
        object.__setattr__(self, "tape_alphabet", frozenset(self.tape_alphabet))
        object.__setattr__(self, "input_alphabet", frozenset(self.input_alphabet))
        object.__setattr__(self, "accepting_states", frozenset(self.accepting_states))
        object.__setattr__(
            self,
            "transition_function",
            MappingProxyType(dict(self.transition_function)),
        )

    def tape_from_string(self, text: str) -> List[Symbol]:
        """One symbol per character; an empty string gives a single blank cell."""

        return [Symbol(char) for char in text] or [self.blank_symbol]

    def initial_configuration(self, tape: Iterable[Symbol]) -> Configuration:
        cells = tuple(tape)
        if not cells:
            raise ValueError("The initial tape must contain at least one cell.")
        return Configuration(state=self.initial_state, head=0, tape=cells)

    def execute(self, tape: Iterable[Symbol]) -> ConfigurationIterator:
        """Start a fresh run on a copy of ``tape`` with the head on its first cell."""

        return ConfigurationIterator(
            self.transition_function,
            self.blank_symbol,
            self.initial_state,
            tape,
        )

    def run(
        self,
        tape: Iterable[Symbol],
        *,
        max_steps: int = 10_000,
        stop_on_accept: bool = False,
        capture: bool = True,
    ) -> MachineResult:
        """Run until the machine halts or ``max_steps`` transitions were applied.

        With ``stop_on_accept`` an accepting state ends the run as soon as it
        becomes current, before the tape is read again.
        """

        iterator = self.execute(tape)
        configurations: List[Configuration] = []
        if capture:
            configurations.append(iterator.configuration)

        def result(halted: bool, reason: str) -> MachineResult:
            current = iterator.configuration
            return MachineResult(
                accepted=halted and current.state in self.accepting_states,
                halted=halted,
                reason=reason,
                steps=iterator.steps,
                final=current,
                configurations=configurations,
            )

        while True:
            if stop_on_accept and iterator.configuration.state in self.accepting_states:
                return result(True, "Accepting state reached")
            if iterator.steps >= max_steps:
                return result(False, "Step limit reached")

            configuration = next(iterator, None)
            if configuration is None:
                if iterator.configuration.state in self.accepting_states:
                    return result(True, "Accepting state reached")
                return result(True, "No transition defined")
            if capture:
                configurations.append(configuration)
