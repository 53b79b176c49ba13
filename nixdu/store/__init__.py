"""Access to the Nix store."""

from .reader import PathInfo, StoreFormatError, StoreReader

__all__ = ["PathInfo", "StoreFormatError", "StoreReader"]
