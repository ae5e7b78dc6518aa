"""Build target enumeration — the fixed set of platforms a release covers."""

from __future__ import annotations

from enum import Enum


class BuildTarget(str, Enum):
    """One (CPU architecture, operating system) pair.

    The set is fixed at design time; adding a platform means adding a
    member here, not passing data at runtime.
    """

    X86_64_LINUX = "x86_64-linux"
    AARCH64_LINUX = "aarch64-linux"
    X86_64_DARWIN = "x86_64-darwin"
    AARCH64_DARWIN = "aarch64-darwin"

    @property
    def arch(self) -> str:
        return self.value.split("-", 1)[0]

    @property
    def os(self) -> str:
        return self.value.split("-", 1)[1]

    def artifact_name(self, binary_name: str) -> str:
        """File name of this target's binary, e.g. ``nix-installer-x86_64-linux``."""
        return f"{binary_name}-{self.value}"


# Every release ships all four targets.
ALL_TARGETS: frozenset[BuildTarget] = frozenset(BuildTarget)


def sorted_targets(targets) -> list[BuildTarget]:
    """Return *targets* in declaration order (stable for logs and receipts)."""
    order = list(BuildTarget)
    return sorted(targets, key=order.index)
