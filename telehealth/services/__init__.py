# Mark services as a package and expose service modules for tests to monkeypatch.

from . import alerts as alerts  # noqa: F401
from . import expiry as expiry  # noqa: F401

__all__ = [
    "alerts",
    "expiry",
]
