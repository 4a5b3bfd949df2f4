from .config_loader import (
    MachineDefinition,
    MachineValidationError,
    dump_machine,
    load_machine,
    parse_machine,
    save_machine,
    validate_input,
    validate_machine,
)
from .machine import (
    Configuration,
    ConfigurationIterator,
    Direction,
    Machine,
    MachineResult,
    State,
    Symbol,
    Tape,
    TransitionFunction,
)

__all__ = [
    "Configuration",
    "ConfigurationIterator",
    "Direction",
    "Machine",
    "MachineDefinition",
    "MachineResult",
    "MachineValidationError",
    "State",
    "Symbol",
    "Tape",
    "TransitionFunction",
    "dump_machine",
    "load_machine",
    "parse_machine",
    "save_machine",
    "validate_input",
    "validate_machine",
]
