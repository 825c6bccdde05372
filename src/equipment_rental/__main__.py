"""Module entry point for python -m equipment_rental."""

from __future__ import annotations

from equipment_rental.app import main


if __name__ == "__main__":
    raise SystemExit(main())
