"""Operating system facts for the built-in platform conditions."""

from __future__ import annotations

import platform
from typing import Any

OS_SOURCE = "os"


class PlatformFacts:
    """Default fact provider answering ``os`` facts about the running host.

    Recognised members are ``IS_WINDOWS``, ``IS_WINDOWS_XP``,
    ``IS_WINDOWS_2003``, ``IS_WINDOWS_VISTA``, ``IS_WINDOWS_7``,
    ``IS_WINDOWS_8``, ``IS_WINDOWS_10``, ``IS_LINUX``, ``IS_MAC``,
    ``IS_AIX``, ``IS_SUNOS``, ``IS_SUNOS_X86`` and ``IS_SUNOS_SPARC``,
    plus ``NAME``, ``VERSION`` and ``ARCH`` which return strings.

    The host details can be overridden, which is how tests pretend to run
    on another platform.

    Example:
        >>> facts = PlatformFacts(system="Windows", release="7", machine="AMD64")
        >>> facts("os", "IS_WINDOWS_7")
        True
    """

    def __init__(self, system: str | None = None, release: str | None = None, machine: str | None = None) -> None:
        self.system = system if system is not None else platform.system()
        self.release = release if release is not None else platform.release()
        self.machine = machine if machine is not None else platform.machine()

    def __call__(self, source: str, member: str) -> Any:
        if source != OS_SOURCE:
            raise LookupError(f"unknown fact source '{source}'")
        member = member.strip().upper()
        values = self._facts()
        if member not in values:
            raise LookupError(f"unknown os fact '{member}'")
        return values[member]

    def _facts(self) -> dict[str, Any]:
        system = self.system.lower()
        release = self.release.lower()
        machine = self.machine.lower()
        windows = system.startswith("windows")
        sunos = system in {"sunos", "solaris"}
        return {
            "NAME": self.system,
            "VERSION": self.release,
            "ARCH": self.machine,
            "IS_WINDOWS": windows,
            "IS_WINDOWS_XP": windows and release == "xp",
            "IS_WINDOWS_2003": windows and release.startswith("2003"),
            "IS_WINDOWS_VISTA": windows and release == "vista",
            "IS_WINDOWS_7": windows and release == "7",
            "IS_WINDOWS_8": windows and release in {"8", "8.1"},
            "IS_WINDOWS_10": windows and release == "10",
            "IS_LINUX": system == "linux",
            "IS_MAC": system == "darwin",
            "IS_AIX": system == "aix",
            "IS_SUNOS": sunos,
            "IS_SUNOS_X86": sunos and (machine == "i86pc" or "86" in machine),
            "IS_SUNOS_SPARC": sunos and (machine.startswith("sun4") or "sparc" in machine),
        }
