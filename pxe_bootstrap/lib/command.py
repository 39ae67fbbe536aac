from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    output: str


class CommandError(RuntimeError):
    def __init__(self, argv: Sequence[str], reason: str, output: str = "") -> None:
        super().__init__(f"Command failed ({reason}): {fmt_argv(argv)}")
        self.argv = list(argv)
        self.reason = reason
        self.output = output


class CommandRunner(Protocol):
    def __call__(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> CmdResult:
        ...


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    timeout: Optional[float] = None,
    logger: Optional[logging.Logger] = None,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - stdout and stderr are captured together so failures carry the full output.
    - A timeout is reported as a CommandError, like a non-zero exit.
    """

    log = logger or logging.getLogger(__name__)
    argv_list = list(argv)
    log.info("CMD %s", fmt_argv(argv_list))

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        out = e.output if isinstance(e.output, str) else (e.output or b"").decode("utf-8", "replace")
        raise CommandError(argv_list, f"timed out after {timeout}s", out) from e
    except OSError as e:
        raise CommandError(argv_list, str(e)) from e

    if p.stdout:
        log.debug("OUTPUT %s", p.stdout.strip())

    if check and p.returncode != 0:
        raise CommandError(argv_list, f"exit status {p.returncode}", p.stdout or "")

    return CmdResult(argv=argv_list, returncode=p.returncode, output=p.stdout or "")
