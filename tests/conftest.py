# tests/conftest.py
import pytest

from metrica.core.expression import Var
from metrica.core.system import begin_system
from metrica.units.registry import DEFAULT_REGISTRY as _sreg


@pytest.fixture(scope="session")
def sreg():
    return _sreg


@pytest.fixture()
def distance():
    """Extensive system: m, cm = m/100, km = m*1000."""
    b = begin_system(name="distance")
    b.set_reference("m")
    b.derive("cm", Var("m") / 100)
    b.derive("km", Var("m") * 1000)
    return b.finish()


@pytest.fixture()
def temperature():
    """Intensive system: celsius, kelvin, fahrenheit."""
    b = begin_system(intensive=True, name="temperature")
    b.set_reference("celsius")
    b.derive("kelvin", Var("celsius") - 273.15)
    b.derive("fahrenheit", (Var("celsius") - 32) * 5 / 9)
    return b.finish()


@pytest.fixture()
def duration():
    b = begin_system(name="duration")
    b.set_reference("s")
    b.derive("min", Var("s") * 60)
    b.derive("h", Var("s") * 3600)
    return b.finish()
