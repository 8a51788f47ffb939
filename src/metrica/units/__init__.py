from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing aid only
    from metrica.units.registry import SystemsRegistry
# Lazy access helpers -------------------------------------------------------

def _get_default_registry() -> "SystemsRegistry":
    # Import here to avoid import-time side-effects / circular imports.
    from metrica.units.registry import DEFAULT_REGISTRY  # local import
    return DEFAULT_REGISTRY

def __getattr__(name: str) -> Any:
    """
    Lazy attribute access. Accessing 'systems' will construct a namespace from
    the package's default registry on first use.
    """
    if name == "systems":
        return _get_default_registry().as_namespace()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__() -> list[str]:
    # Improve discoverability in REPL / autocomplete.
    return sorted(list(globals().keys()) + ["systems"])
