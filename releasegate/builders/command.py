"""Generic command builder: runs a templated shell command per target.

Placeholders substituted (shell-quoted) into the template:

    {target}    target identifier, e.g. ``aarch64-darwin``
    {arch}      CPU architecture, e.g. ``aarch64``
    {os}        operating system, e.g. ``darwin``
    {revision}  source revision being built
    {output}    path the command must write the binary to
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

from releasegate.builders import BuildError
from releasegate.models.targets import BuildTarget

logger = logging.getLogger(__name__)


class CommandBuilder:
    """Builds each target by running ``command`` through the shell.

    Parameters
    ----------
    command:
        Command template, e.g. ``"cargo build --target {arch}-... && cp ... {output}"``.
    binary_name:
        Base name of the produced binary; the output file is
        ``<binary_name>-<target>`` inside the per-target workdir.
    env:
        Extra environment variables for the command.
    """

    def __init__(
        self,
        command: str,
        binary_name: str = "nix-installer",
        env: dict[str, str] | None = None,
    ) -> None:
        self.command = command
        self.binary_name = binary_name
        self.env = env or {}

    def render(self, target: BuildTarget, revision: str, output: Path) -> str:
        """Return the command line for *target* with placeholders filled."""
        replacements = {
            "target": shlex.quote(target.value),
            "arch": shlex.quote(target.arch),
            "os": shlex.quote(target.os),
            "revision": shlex.quote(revision),
            "output": shlex.quote(str(output)),
        }
        return self.command.format(**replacements)

    def build(
        self,
        target: BuildTarget,
        revision: str,
        workdir: Path,
        timeout: float | None = None,
    ) -> Path:
        workdir = Path(workdir)
        workdir.mkdir(parents=True, exist_ok=True)
        output = workdir / target.artifact_name(self.binary_name)
        cmd = self.render(target, revision, output)
        logger.debug("Running %s", cmd)

        try:
            proc = subprocess.run(
                cmd,
                shell=True,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
                env={**os.environ, **self.env},
            )
        except subprocess.TimeoutExpired as exc:
            raise BuildError(target, f"command timed out after {exc.timeout}s") from exc

        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout).strip()
            raise BuildError(
                target, f"command exited with {proc.returncode}: {detail}".rstrip(": ")
            )
        if not output.is_file():
            raise BuildError(target, f"command did not produce {output.name}")
        return output
