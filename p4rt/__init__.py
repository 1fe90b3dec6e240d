"""Bit vectors, checksums, match-action tables and a HiCuts classifier for P4 pipelines."""

__version__ = "0.1.0"