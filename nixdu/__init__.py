"""Visualise which gc-roots keep space alive in the nix store."""

__version__ = "0.1.0"
