from __future__ import annotations

from typing import Dict, Mapping, Optional


class CrioGetError(Exception):
    """Base error: every failure aborts the run with a non-zero exit."""

    code = "E_CRIO_GET"

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        context: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.context: Dict[str, str] = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)


class RequirementError(CrioGetError):
    code = "E_REQUIREMENT"


class ArgumentError(CrioGetError):
    code = "E_ARGUMENT"


class NetworkError(CrioGetError):
    code = "E_NETWORK"


class ResolutionError(CrioGetError):
    code = "E_RESOLUTION"


class VerificationError(CrioGetError):
    code = "E_VERIFICATION"


class InstallError(CrioGetError):
    code = "E_INSTALL"


__all__ = [
    "ArgumentError",
    "CrioGetError",
    "InstallError",
    "NetworkError",
    "RequirementError",
    "ResolutionError",
    "VerificationError",
]
