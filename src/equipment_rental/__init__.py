"""Equipment rental billing and stock reconciliation."""

from equipment_rental.version import __app_name__, __version__

__all__ = ["__app_name__", "__version__"]
