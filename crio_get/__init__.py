"""crio-get: bootstrap installer for CRI-O release bundles.

Core design goals:
- Resolve the build to install when none is pinned
- Verify provenance when cosign is available
- Install onto a configurable path layout
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
