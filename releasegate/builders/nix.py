"""Nix flake builder: one static binary per target via ``nix build``.

For target ``x86_64-linux`` and the default attribute this runs::

    nix build .#packages.x86_64-linux.nix-installer-static -L --out-link <workdir>/result

and copies ``result/bin/<binary_name>`` to ``<workdir>/<binary_name>-<target>``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from releasegate.builders import BuildError
from releasegate.models.targets import BuildTarget

logger = logging.getLogger(__name__)

# Lines of build log kept in a failure cause.
_LOG_TAIL_LINES = 20


class NixFlakeBuilder:
    """Builds a flake package attribute for each target.

    Parameters
    ----------
    source_dir:
        Checkout containing ``flake.nix``.
    flake_attr:
        Package attribute under ``packages.<target>``.
    binary_name:
        Name of the executable inside ``result/bin``.
    pin_revision:
        When True, build ``git+file://<source_dir>?rev=<revision>`` instead
        of the working tree, so the binary matches the revision exactly.
    """

    def __init__(
        self,
        source_dir: Path = Path("."),
        flake_attr: str = "nix-installer-static",
        binary_name: str = "nix-installer",
        *,
        pin_revision: bool = False,
        nix_bin: str = "nix",
    ) -> None:
        self.source_dir = Path(source_dir)
        self.flake_attr = flake_attr
        self.binary_name = binary_name
        self.pin_revision = pin_revision
        self.nix_bin = nix_bin

    def flake_ref(self, target: BuildTarget, revision: str) -> str:
        """Return the installable for *target*."""
        if self.pin_revision:
            base = f"git+file://{self.source_dir.resolve()}?rev={revision}"
        else:
            base = "."
        return f"{base}#packages.{target.value}.{self.flake_attr}"

    def build(
        self,
        target: BuildTarget,
        revision: str,
        workdir: Path,
        timeout: float | None = None,
    ) -> Path:
        workdir = Path(workdir)
        workdir.mkdir(parents=True, exist_ok=True)
        out_link = workdir / "result"
        cmd = [
            self.nix_bin,
            "build",
            self.flake_ref(target, revision),
            "-L",
            "--out-link",
            str(out_link),
        ]
        logger.debug("Running %s", " ".join(cmd))

        try:
            proc = subprocess.run(
                cmd,
                cwd=self.source_dir,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise BuildError(target, f"nix build timed out after {exc.timeout}s") from exc
        except OSError as exc:
            raise BuildError(target, f"could not run {self.nix_bin}: {exc}") from exc

        if proc.returncode != 0:
            tail = "\n".join(proc.stderr.strip().splitlines()[-_LOG_TAIL_LINES:])
            raise BuildError(
                target, f"nix build exited with {proc.returncode}\n{tail}".rstrip()
            )

        built = out_link / "bin" / self.binary_name
        if not built.is_file():
            raise BuildError(target, f"build output has no bin/{self.binary_name}")

        artifact = workdir / target.artifact_name(self.binary_name)
        shutil.copyfile(built, artifact)
        artifact.chmod(0o755)
        return artifact
