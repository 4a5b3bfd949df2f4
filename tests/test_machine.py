import dataclasses
import itertools
import logging

import pytest

from turing_machine import Configuration, Direction, Machine, State, Symbol, Tape
from turing_machine.catalog import binary_increment, busy_beaver_2, busy_beaver_3, runaway

BUSY_BEAVER_TRACE = [
    "1b0",
    "a11",
    "c011",
    "b0111",
    "a01111",
    "1b1111",
    "11b111",
    "111b11",
    "1111b1",
    "11111b0",
    "1111a11",
    "111c111",
    "1111h11",
]

ZERO, ONE = Symbol("0"), Symbol("1")


def make_machine(rules, accepting=()):
    """Small machine over {0, 1} with blank 0; rules are (state, read, next, write, direction)."""
    transition_function = {
        (State(s), Symbol(r)): (State(n), Symbol(w), d) for s, r, n, w, d in rules
    }
    states = {State("s")} | {State(name) for rule in rules for name in (rule[0], rule[2])}
    return Machine(
        states=states,
        tape_alphabet={ZERO, ONE},
        blank_symbol=ZERO,
        input_alphabet={ONE},
        initial_state=State("s"),
        accepting_states={State(name) for name in accepting},
        transition_function=transition_function,
    )


def test_busy_beaver_trace(busy_beaver, blank_tape):
    rendered = [str(configuration) for configuration in busy_beaver.execute(blank_tape)]
    assert rendered == BUSY_BEAVER_TRACE


def test_execution_is_deterministic(busy_beaver, blank_tape):
    first = list(busy_beaver.execute(blank_tape))
    second = list(busy_beaver.execute(blank_tape))
    assert first == second


def test_execute_starts_fresh_each_time(busy_beaver, blank_tape):
    iterator = busy_beaver.execute(blank_tape)
    list(iterator)
    assert [str(c) for c in busy_beaver.execute(blank_tape)] == BUSY_BEAVER_TRACE


def test_execute_does_not_mutate_the_supplied_tape(busy_beaver):
    tape = [ZERO]
    list(busy_beaver.execute(tape))
    assert tape == [ZERO]


def test_no_transition_for_first_read_gives_empty_sequence():
    machine = make_machine([("s", "1", "s", "1", Direction.RIGHT)])
    assert list(machine.execute([ZERO])) == []


def test_empty_transition_function_gives_empty_sequence():
    machine = make_machine([])
    iterator = machine.execute([ZERO])
    assert list(iterator) == []
    assert iterator.halted
    assert iterator.steps == 0
    assert iterator.configuration == Configuration(State("s"), 0, (ZERO,))


def test_empty_tape_is_rejected(busy_beaver):
    with pytest.raises(ValueError):
        busy_beaver.execute([])
    with pytest.raises(ValueError):
        busy_beaver.initial_configuration([])


def test_tape_grows_by_at_most_one_cell_per_step(busy_beaver, blank_tape):
    previous = busy_beaver.initial_configuration(blank_tape)
    for configuration in busy_beaver.execute(blank_tape):
        assert len(configuration.tape) - len(previous.tape) in (0, 1)
        assert 0 <= configuration.head < len(configuration.tape)
        previous = configuration


def test_left_move_at_origin_prepends_blank():
    machine = make_machine([("s", "0", "t", "1", Direction.LEFT)])
    (configuration,) = list(machine.execute([ZERO, ONE]))
    assert configuration.head == 0
    assert configuration.tape == (ZERO, ONE, ONE)
    assert str(configuration) == "t011"


def test_right_move_at_last_cell_appends_blank():
    machine = make_machine([("s", "1", "t", "1", Direction.RIGHT)])
    (configuration,) = list(machine.execute([ONE]))
    assert configuration.head == 1
    assert configuration.tape == (ONE, ZERO)


def test_moves_inside_the_tape_do_not_grow_it():
    machine = make_machine(
        [("s", "1", "t", "0", Direction.RIGHT), ("t", "1", "u", "0", Direction.LEFT)]
    )
    configurations = list(machine.execute([ONE, ONE]))
    assert [c.tape for c in configurations] == [(ZERO, ONE), (ZERO, ZERO)]
    assert [c.head for c in configurations] == [1, 0]


def test_yielded_configurations_are_not_changed_by_later_steps(busy_beaver, blank_tape):
    iterator = busy_beaver.execute(blank_tape)
    first = next(iterator)
    snapshot = (first.state, first.head, first.tape)
    list(iterator)
    assert (first.state, first.head, first.tape) == snapshot
    assert str(first) == "1b0"


def test_accepting_state_does_not_stop_iteration():
    machine = make_machine(
        [("s", "0", "y", "1", Direction.RIGHT), ("y", "0", "z", "1", Direction.RIGHT)],
        accepting=["y"],
    )
    assert [str(c) for c in machine.execute([ZERO])] == ["1y0", "11z0"]


def test_iterator_stays_exhausted(busy_beaver, blank_tape):
    iterator = busy_beaver.execute(blank_tape)
    assert iter(iterator) is iterator
    assert len(list(iterator)) == 13
    assert iterator.steps == 13
    assert next(iterator, None) is None
    assert str(iterator.configuration) == "1111h11"


def test_non_halting_machine_streams_lazily():
    machine = runaway()
    configurations = list(itertools.islice(machine.execute([ZERO]), 1000))
    assert len(configurations) == 1000
    assert configurations[-1].head == 1000
    assert len(configurations[-1].tape) == 1001


def test_halt_is_logged(busy_beaver, blank_tape, caplog):
    caplog.set_level(logging.DEBUG, logger="turing_machine.machine")
    list(busy_beaver.execute(blank_tape))
    assert "Halted in state h reading 1 after 13 steps" in caplog.text


def test_machine_is_hashable(busy_beaver):
    assert hash(busy_beaver) == hash(busy_beaver_3())
    assert len({busy_beaver, busy_beaver_3(), busy_beaver_2()}) == 2


def test_machine_is_immutable(busy_beaver):
    with pytest.raises(dataclasses.FrozenInstanceError):
        busy_beaver.initial_state = State("b")
    with pytest.raises(TypeError):
        busy_beaver.transition_function[(State("h"), ONE)] = (State("h"), ONE, Direction.LEFT)


def test_machine_copies_transition_function():
    rules = {(State("s"), ZERO): (State("s"), ONE, Direction.RIGHT)}
    machine = Machine(
        states={State("s")},
        tape_alphabet={ZERO, ONE},
        blank_symbol=ZERO,
        input_alphabet={ONE},
        initial_state=State("s"),
        accepting_states=set(),
        transition_function=rules,
    )
    rules.clear()
    assert len(machine.transition_function) == 1
    assert isinstance(machine.states, frozenset)


def test_tape_indexing_after_growth_on_both_sides():
    tape = Tape(ZERO, [ONE])
    tape.move(Direction.LEFT)
    tape.write(ONE)
    tape.move(Direction.LEFT)
    assert tape.head == 0
    assert len(tape) == 3
    assert tape.snapshot() == (ZERO, ONE, ONE)
    tape.move(Direction.RIGHT)
    tape.move(Direction.RIGHT)
    tape.move(Direction.RIGHT)
    assert tape.head == 3
    assert tape.read() == ZERO
    tape[1] = ZERO
    assert tape.snapshot() == (ZERO, ZERO, ONE, ZERO)
    assert tape[2] == ONE


def test_render_then_parse_reproduces_configuration(busy_beaver, blank_tape):
    for configuration in busy_beaver.execute(blank_tape):
        assert Configuration.parse(str(configuration), busy_beaver.states) == configuration


@pytest.mark.parametrize("text", ["0011", "1ab0", "01a"])
def test_parse_rejects_bad_renderings(busy_beaver, text):
    with pytest.raises(ValueError):
        Configuration.parse(text, busy_beaver.states)


def test_configuration_dict_round_trip(busy_beaver, blank_tape):
    for configuration in busy_beaver.execute(blank_tape):
        data = configuration.to_dict()
        assert Configuration.from_dict(data) == configuration
    assert data == {"state": "h", "head": 4, "tape": ["1"] * 6}


def test_tape_from_string(busy_beaver):
    assert busy_beaver.tape_from_string("") == [ZERO]
    assert busy_beaver.tape_from_string("11") == [ONE, ONE]


def test_run_reports_acceptance(busy_beaver, blank_tape):
    result = busy_beaver.run(blank_tape)
    assert result.halted
    assert result.accepted
    assert result.reason == "Accepting state reached"
    assert result.steps == 13
    assert str(result.final) == "1111h11"
    assert [str(c) for c in result.configurations] == ["a0"] + BUSY_BEAVER_TRACE


def test_run_without_capture(busy_beaver, blank_tape):
    result = busy_beaver.run(blank_tape, capture=False)
    assert result.configurations == []
    assert result.steps == 13


def test_run_halting_outside_accepting_state():
    machine = make_machine([("s", "0", "t", "1", Direction.RIGHT)], accepting=["y"])
    result = machine.run([ZERO])
    assert result.halted
    assert not result.accepted
    assert result.reason == "No transition defined"
    assert result.steps == 1


def test_run_stops_at_step_limit():
    result = runaway().run([ZERO], max_steps=25)
    assert not result.halted
    assert not result.accepted
    assert result.reason == "Step limit reached"
    assert result.steps == 25
    assert len(result.configurations) == 26


def test_stop_on_accept_halts_before_reading():
    machine = make_machine(
        [("s", "0", "y", "1", Direction.RIGHT), ("y", "0", "y", "0", Direction.RIGHT)],
        accepting=["y"],
    )
    unbounded = machine.run([ZERO], max_steps=5)
    assert not unbounded.halted
    assert unbounded.steps == 5

    result = machine.run([ZERO], max_steps=5, stop_on_accept=True)
    assert result.halted
    assert result.accepted
    assert result.steps == 1
    assert str(result.final) == "1y0"


def test_stop_on_accept_with_accepting_initial_state():
    machine = make_machine([("s", "0", "s", "1", Direction.RIGHT)], accepting=["s"])
    result = machine.run([ZERO], stop_on_accept=True)
    assert result.accepted
    assert result.steps == 0


def test_busy_beaver_2():
    machine = busy_beaver_2()
    result = machine.run([machine.blank_symbol])
    assert result.steps == 6
    assert result.final.tape.count(ONE) == 4


@pytest.mark.parametrize(
    "number, expected",
    [("0", "_1_"), ("11", "_100_"), ("101", "110_"), ("1011", "1100_")],
)
def test_binary_increment(number, expected):
    machine = binary_increment()
    result = machine.run(machine.tape_from_string(number))
    assert result.accepted
    assert "".join(str(symbol) for symbol in result.final.tape) == expected
