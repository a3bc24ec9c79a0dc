"""Finmatch - condition-based transaction matching and rule-driven labelling."""

__version__ = "0.1.0"
