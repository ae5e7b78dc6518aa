"""Build backends — the opaque ``build(target) -> artifact`` collaborator.

Defines the ``Builder`` Protocol the BuildCoordinator drives, and the
``BuildError`` every backend raises on failure.

Backends live in submodules: ``nix.NixFlakeBuilder`` runs
``nix build .#packages.<target>.<attr>``; ``command.CommandBuilder`` runs
any templated command.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from releasegate.models.targets import BuildTarget


class BuildError(RuntimeError):
    """Raised by a builder when a target cannot be built."""

    def __init__(self, target: BuildTarget, message: str) -> None:
        self.target = target
        super().__init__(f"{target.value}: {message}")


@runtime_checkable
class Builder(Protocol):
    """Protocol for build backends.

    Implementations must be safe to call from several threads at once for
    different targets; each call gets its own ``workdir``.

    Implementations must also honour ``timeout`` themselves, for example by
    passing it to ``subprocess.run``.  The coordinator stops waiting for a
    unit that overruns, but it cannot stop the worker thread, and the
    interpreter joins that thread before the process exits.
    """

    def build(
        self,
        target: BuildTarget,
        revision: str,
        workdir: Path,
        timeout: float | None = None,
    ) -> Path:
        """Build *target* at *revision* and return the path of the binary.

        Raises
        ------
        BuildError
            If the build fails or exceeds *timeout* seconds.
        """
        ...

