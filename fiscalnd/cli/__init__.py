"""Fiscal ND command-line interface."""
