"""Running the Slurm command line tools."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence


class CommandError(RuntimeError):
    """A command could not be started or exited with a failure status."""

    def __init__(self, command: str, returncode: int | None, reason: str) -> None:
        super().__init__(f"{command}: {reason}")
        self.command = command
        self.returncode = returncode


def run(command: str, args: Sequence[str]) -> str:
    """Run ``command`` with ``args`` and return what it wrote to stdout."""
    try:
        completed = subprocess.run(
            [command, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError as exc:
        raise CommandError(command, None, str(exc)) from exc
    if completed.returncode != 0:
        raise CommandError(
            command, completed.returncode, f"exit status {completed.returncode}"
        )
    return completed.stdout.decode("utf-8", errors="replace")