"""Operational helpers for the Umbro infrastructure repo.

Pure deployment logic (stage mapping, trust conditions, secret derivation)
lives beside a Typer/Rich CLI that pushes stack outputs into Vercel.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
