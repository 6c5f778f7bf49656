"""Keep a local ripgrep checkout, its Rust toolchain and its release build up to date."""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = ["__version__"]
