"""Fiscal ND - Deterministic federal and North Dakota tax estimation engine."""

__version__ = "0.4.0"
