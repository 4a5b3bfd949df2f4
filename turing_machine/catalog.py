from __future__ import annotations

from typing import Callable, Dict, Iterable, Tuple

from .machine import Direction, Machine, State, Symbol

L, R = Direction.LEFT, Direction.RIGHT


def _build(
    rules: Iterable[Tuple[str, str, str, str, Direction]],
    *,
    states: str,
    tape_alphabet: str,
    blank: str,
    input_alphabet: str,
    initial: str,
    accepting: str,
) -> Machine:
    """Rules are ``(state, read, next_state, write, direction)`` rows."""

    transition_function = {
        (State(state), Symbol(read)): (State(next_state), Symbol(write), direction)
        for state, read, next_state, write, direction in rules
    }
    return Machine(
        states=frozenset(State(name) for name in states),
        tape_alphabet=frozenset(Symbol(value) for value in tape_alphabet),
        blank_symbol=Symbol(blank),
        input_alphabet=frozenset(Symbol(value) for value in input_alphabet),
        initial_state=State(initial),
        accepting_states=frozenset(State(name) for name in accepting),
        transition_function=transition_function,
    )


def busy_beaver_3() -> Machine:
    """3-state, 2-symbol busy beaver: 13 steps, six 1s on a blank tape."""

    return _build(
        [
            ("a", "0", "b", "1", R),
            ("a", "1", "c", "1", L),
            ("b", "0", "a", "1", L),
            ("b", "1", "b", "1", R),
            ("c", "0", "b", "1", L),
            ("c", "1", "h", "1", R),
        ],
        states="abch",
        tape_alphabet="01",
        blank="0",
        input_alphabet="1",
        initial="a",
        accepting="h",
    )


def busy_beaver_2() -> Machine:
    """2-state, 2-symbol busy beaver: 6 steps, four 1s on a blank tape."""

    return _build(
        [
            ("a", "0", "b", "1", R),
            ("a", "1", "b", "1", L),
            ("b", "0", "a", "1", L),
            ("b", "1", "h", "1", R),
        ],
        states="abh",
        tape_alphabet="01",
        blank="0",
        input_alphabet="1",
        initial="a",
        accepting="h",
    )


def binary_increment() -> Machine:
    """Adds one to a binary number written with the head on its first digit."""

    return _build(
        [
            ("r", "0", "r", "0", R),
            ("r", "1", "r", "1", R),
            ("r", "_", "c", "_", L),
            ("c", "1", "c", "0", L),
            ("c", "0", "d", "1", L),
            ("c", "_", "d", "1", L),
        ],
        states="rcd",
        tape_alphabet="01_",
        blank="_",
        input_alphabet="01",
        initial="r",
        accepting="d",
    )


def runaway() -> Machine:
    """Never halts: walks right over blanks forever."""

    return _build(
        [("r", "0", "r", "0", R)],
        states="r",
        tape_alphabet="0",
        blank="0",
        input_alphabet="",
        initial="r",
        accepting="",
    )


BUILTIN_MACHINES: Dict[str, Callable[[], Machine]] = {
    "busy-beaver-2": busy_beaver_2,
    "busy-beaver-3": busy_beaver_3,
    "binary-increment": binary_increment,
    "runaway": runaway,
}
