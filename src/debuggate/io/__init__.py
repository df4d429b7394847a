from .yaml_adapter import UnitLoader, discover_unit_files, load_units, UNIT_SUFFIXES

__all__ = ["UnitLoader", "discover_unit_files", "load_units", "UNIT_SUFFIXES"]
