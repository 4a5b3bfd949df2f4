from pathlib import Path

import pytest

from turing_machine.catalog import busy_beaver_3

MACHINES_DIR = Path(__file__).resolve().parent.parent / "machines"


@pytest.fixture
def busy_beaver():
    return busy_beaver_3()


@pytest.fixture
def blank_tape(busy_beaver):
    return [busy_beaver.blank_symbol]


@pytest.fixture
def machines_dir():
    return MACHINES_DIR
