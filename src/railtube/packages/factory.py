"""Factory for creating package backend instances."""

from railtube.packages.apt_handler import AptHandler
from railtube.packages.base import PackageBackend
from railtube.packages.cargo_handler import CargoHandler
from railtube.packages.flatpak_handler import FlatpakHandler
from railtube.packages.snap_handler import SnapHandler
from railtube.system.worker import Worker

SUPPORTED_BACKENDS = ["apt", "snap", "flatpak", "cargo"]

_BACKENDS: dict[str, type[PackageBackend]] = {
    "apt": AptHandler,
    "snap": SnapHandler,
    "flatpak": FlatpakHandler,
    "cargo": CargoHandler,
}


def create_backend(backend_name: str, system: Worker) -> PackageBackend:
    """Create a package-list backend by section name.

    Args:
        backend_name: Name of the backend (apt, snap, flatpak, cargo)
        system: System worker

    Returns:
        Backend instance

    Raises:
        ValueError: If the backend name is not recognized
    """
    try:
        backend_cls = _BACKENDS[backend_name]
    except KeyError:
        raise ValueError(
            f"Unknown backend '{backend_name}'. "
            f"Available backends: {', '.join(SUPPORTED_BACKENDS)}"
        ) from None
    return backend_cls(system)


def create_all_backends(system: Worker) -> list[PackageBackend]:
    """Create every package-list backend, in reconciliation order.

    Args:
        system: System worker

    Returns:
        List of backend instances
    """
    return [create_backend(name, system) for name in SUPPORTED_BACKENDS]
