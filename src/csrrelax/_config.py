"""
csrrelax Config - Behaviour Configuration

Provides dataclass-based configuration for matrix construction and the
relaxation kernels. Settings can be changed globally or overridden for the
current thread with a context manager.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List
import threading


# =============================================================================
# Configuration Classes
# =============================================================================

@dataclass
class BuildConfig:
    """Configuration for incremental construction (``set`` / ``close``)."""
    warn_empty_rows: bool = True     # Log a warning per empty row at close()
    check_duplicates: bool = False   # Reject repeated (row, col) pairs at close()


@dataclass
class KernelConfig:
    """Configuration for the numerical kernels."""
    check_diagonal: bool = True      # Reject zero/missing diagonals before relaxing
    check_finite: bool = False       # Reject non-finite residual norms


@dataclass
class DTypeConfig:
    """Configuration for element types."""
    default: str = 'float64'         # dtype of SparseCSRMatrix.empty() / Vector()


_SECTIONS = ("build", "kernel", "dtype")


# =============================================================================
# Global Configuration Manager
# =============================================================================

class CsrConfig:
    """
    Global configuration manager for csrrelax.

    Provides thread-local configuration with context manager support.

    Example:
        # Global configuration
        csrrelax.config.kernel.check_finite = True

        # Local configuration (context manager)
        with csrrelax.config.local(build=BuildConfig(warn_empty_rows=False)):
            mat.close()
        # Back to global config
    """

    def __init__(self):
        self._global_build = BuildConfig()
        self._global_kernel = KernelConfig()
        self._global_dtype = DTypeConfig()

        # Thread-local storage for context overrides
        self._local = threading.local()

    # -------------------------------------------------------------------------
    # Property Accessors (with thread-local override support)
    # -------------------------------------------------------------------------

    @property
    def build(self) -> BuildConfig:
        """Get build configuration."""
        if getattr(self._local, "build", None) is not None:
            return self._local.build
        return self._global_build

    @build.setter
    def build(self, value: BuildConfig):
        """Set global build configuration."""
        self._global_build = value

    @property
    def kernel(self) -> KernelConfig:
        """Get kernel configuration."""
        if getattr(self._local, "kernel", None) is not None:
            return self._local.kernel
        return self._global_kernel

    @kernel.setter
    def kernel(self, value: KernelConfig):
        """Set global kernel configuration."""
        self._global_kernel = value

    @property
    def dtype(self) -> DTypeConfig:
        """Get dtype configuration."""
        if getattr(self._local, "dtype", None) is not None:
            return self._local.dtype
        return self._global_dtype

    @dtype.setter
    def dtype(self, value: DTypeConfig):
        """Set global dtype configuration."""
        self._global_dtype = value

    # -------------------------------------------------------------------------
    # Convenience Properties
    # -------------------------------------------------------------------------

    @property
    def default_dtype(self) -> str:
        """Default element dtype."""
        return self.dtype.default

    @default_dtype.setter
    def default_dtype(self, value: str):
        """Set default element dtype."""
        self._global_dtype.default = value

    # -------------------------------------------------------------------------
    # Context Manager Support
    # -------------------------------------------------------------------------

    def local(self, **kwargs) -> "_LocalConfigContext":
        """
        Create a local configuration context.

        Args:
            **kwargs: Configuration overrides (build, kernel, dtype). Values
                may be config instances or dicts of field overrides applied on
                top of the current settings.

        Returns:
            Context manager

        Raises:
            KeyError: If an unknown section name is given.
        """
        for key in kwargs:
            if key not in _SECTIONS:
                raise KeyError(f"Unknown config section: {key!r}. Valid: {_SECTIONS}")
        return _LocalConfigContext(self, **kwargs)

    def _set_local(self, **kwargs) -> Dict[str, Any]:
        """Set thread-local configuration, returning the previous overrides."""
        previous = {}
        for key, value in kwargs.items():
            previous[key] = getattr(self._local, key, None)
            if isinstance(value, dict):
                value = replace(getattr(self, key), **value)
            setattr(self._local, key, value)
        return previous

    def _restore_local(self, previous: Dict[str, Any]):
        """Restore thread-local configuration saved by ``_set_local``."""
        for key, value in previous.items():
            setattr(self._local, key, value)

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset(self):
        """Reset all configurations to defaults."""
        self._global_build = BuildConfig()
        self._global_kernel = KernelConfig()
        self._global_dtype = DTypeConfig()
        for key in _SECTIONS:
            setattr(self._local, key, None)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "build": {
                "warn_empty_rows": self.build.warn_empty_rows,
                "check_duplicates": self.build.check_duplicates,
            },
            "kernel": {
                "check_diagonal": self.kernel.check_diagonal,
                "check_finite": self.kernel.check_finite,
            },
            "dtype": {
                "default": self.dtype.default,
            },
        }

    def __repr__(self) -> str:
        return f"CsrConfig({self.to_dict()})"


class _LocalConfigContext:
    """Context manager for local configuration override."""

    def __init__(self, config: CsrConfig, **kwargs):
        self._config = config
        self._kwargs = kwargs
        self._previous: List[Dict[str, Any]] = []

    def __enter__(self):
        self._previous.append(self._config._set_local(**self._kwargs))
        return self._config

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._config._restore_local(self._previous.pop())
        return False


# =============================================================================
# Global Instance
# =============================================================================

config = CsrConfig()


def get_config() -> CsrConfig:
    """Get the global configuration instance."""
    return config


__all__ = [
    "BuildConfig",
    "KernelConfig",
    "DTypeConfig",
    "CsrConfig",
    "config",
    "get_config",
]
