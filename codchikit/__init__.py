"""Config files, locking, nix log parsing, progress tracking and status output for code machines."""

__version__ = "0.1.0"