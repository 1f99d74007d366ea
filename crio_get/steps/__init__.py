from .step_10_resolve_version import ResolveVersionStep
from .step_20_locate_artifacts import LocateArtifactsStep
from .step_30_acquire_bundle import AcquireBundleStep
from .step_40_install_bundle import InstallBundleStep

__all__ = [
    "ResolveVersionStep",
    "LocateArtifactsStep",
    "AcquireBundleStep",
    "InstallBundleStep",
]
