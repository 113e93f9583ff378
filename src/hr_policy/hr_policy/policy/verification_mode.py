"""Level-3 verification requirement sets.

Stored rows keep the mode as a string (``location_selfie_ip``); everything
inside the engine works with the ``VerificationRequirement`` flag set.
"""
from __future__ import annotations

from enum import Flag, auto

from ..core.exceptions import ValidationError


class VerificationRequirement(Flag):
    NONE = 0
    LOCATION = auto()
    SELFIE = auto()
    WIFI_IP = auto()


_L = VerificationRequirement.LOCATION
_S = VerificationRequirement.SELFIE
_I = VerificationRequirement.WIFI_IP

_MODE_TO_FLAGS = {
    "location_only": _L,
    "selfie_only": _S,
    "ip_only": _I,
    "location_selfie": _L | _S,
    "location_ip": _L | _I,
    "selfie_ip": _S | _I,
    "location_selfie_ip": _L | _S | _I,
}
_FLAGS_TO_MODE = {flags: mode for mode, flags in _MODE_TO_FLAGS.items()}

ALL_MODES = tuple(_MODE_TO_FLAGS)


def parse_mode(value: str) -> VerificationRequirement:
    flags = _MODE_TO_FLAGS.get((value or "").strip().lower())
    if flags is None:
        raise ValidationError(f"Unknown level 3 verification mode: {value!r}")
    return flags


def format_mode(flags: VerificationRequirement) -> str:
    mode = _FLAGS_TO_MODE.get(flags)
    if mode is None:
        raise ValidationError("Level 3 verification needs at least one requirement")
    return mode


def members(flags: VerificationRequirement) -> list[VerificationRequirement]:
    """Individual requirements contained in ``flags`` (stable order)."""
    return [r for r in (_L, _S, _I) if r & flags]
