# pytest tests for metrica.units.registry
#
# Most tests use an isolated registry from the bootstrap helper so the shared
# DEFAULT_REGISTRY is never mutated.

import threading

import pytest

import metrica.units.registry as regmod
from metrica.core.errors import IntensiveOperationNotAllowed
from metrica.core.system import MetricSystem
from metrica.units.registry import SystemsNamespace, SystemsRegistry


@pytest.fixture()
def reg():
    """Fresh, fully-bootstrapped SystemsRegistry for isolation per test."""
    return regmod._bootstrap_default_registry()


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

def test_catalogue_systems_present(reg):
    assert set(reg.all()) == {"distance", "time", "mass", "temperature"}

@pytest.mark.parametrize("system, unit, value, target, expected", [
    ("distance", "km", 1.5, "m", 1500.0),
    ("distance", "mm", 250, "cm", 25.0),
    ("time", "h", 2, "min", 120.0),
    ("time", "day", 1, "s", 86400.0),
    ("time", "ms", 1500, "s", 1.5),
    ("mass", "t", 1, "g", 1e6),
    ("mass", "mg", 500, "g", 0.5),
    ("temperature", "kelvin", 0, "celsius", -273.15),
    ("temperature", "fahrenheit", 212, "celsius", 100.0),
])
def test_catalogue_conversions(reg, system, unit, value, target, expected):
    s = reg.get(system)
    assert (s[unit](value) >> s[target]).value == pytest.approx(expected)

def test_only_temperature_is_intensive(reg):
    flags = {name: s.intensive for name, s in reg.all().items()}
    assert flags == {"distance": False, "time": False, "mass": False, "temperature": True}

def test_catalogue_systems_are_incompatible(reg):
    with pytest.raises(TypeError):
        reg.get("distance").m(1) >> reg.get("time").s

def test_temperature_arithmetic_forbidden(reg):
    t = reg.get("temperature")
    with pytest.raises(IntensiveOperationNotAllowed):
        t.celsius(1) + t.kelvin(1)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def test_register_and_get():
    reg = SystemsRegistry()
    s = MetricSystem.from_declarations(["b", "kb = b * 1024"], name="data")
    reg.register(s)
    assert reg.get("data") is s
    assert reg.has("data") and "data" in reg
    assert "nope" not in reg

def test_duplicate_registration_rejected(reg):
    dup = MetricSystem.from_declarations(["m"], name="distance")
    with pytest.raises(ValueError):
        reg.register(dup)
    reg.register(dup, replace=True)
    assert reg.get("distance") is dup

def test_register_requires_system():
    with pytest.raises(TypeError):
        SystemsRegistry().register("distance")

def test_reserved_names_rejected():
    reg = SystemsRegistry()
    s = MetricSystem.from_declarations(["x"], name="_reserved_names")
    with pytest.raises(ValueError):
        reg.register(s)

def test_unknown_system_raises(reg):
    with pytest.raises(ValueError):
        reg.get("luminosity")

def test_all_returns_copy(reg):
    snapshot = reg.all()
    snapshot.clear()
    assert reg.has("distance")

def test_thread_safe_registration():
    reg = SystemsRegistry()

    def worker(i):
        reg.register(MetricSystem.from_declarations(["u"], name=f"s{i}"))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(32)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(reg.all()) == 32


# ---------------------------------------------------------------------------
# Namespace
# ---------------------------------------------------------------------------

def test_namespace_attribute_access(reg):
    ns = reg.as_namespace()
    assert isinstance(ns, SystemsNamespace)
    assert ns.distance is reg.get("distance")
    assert ns("time") is reg.get("time")
    assert "mass" in ns

def test_namespace_unknown_is_attribute_error(reg):
    with pytest.raises(AttributeError):
        reg.as_namespace().luminosity

def test_namespace_dir(reg):
    names = dir(reg.as_namespace())
    assert {"distance", "time", "mass", "temperature"} <= set(names)
    assert names == sorted(names)
