from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import typer

from geodoctor.runtime import env_policy

EchoFn = Callable[..., None]


@dataclass
class Console:
    """Tagged diagnostic output for one command invocation.

    ``quiet`` drops info and debug lines; debug lines additionally need
    ``verbose`` (or ``GEODOCTOR_DEBUG=1``). Warnings and errors go to stderr;
    with ``stream_err`` every line does, leaving stdout to machine output.
    """

    tag: str
    quiet: bool = False
    verbose: bool = field(default_factory=env_policy.debug_enabled)
    echo: EchoFn = typer.echo
    stream_err: bool = False

    def _emit(self, line: str, *, err: bool = False) -> None:
        self.echo(f"[{self.tag}] {line}", err=err or self.stream_err)

    def debug(self, message: str) -> None:
        if self.quiet or not self.verbose:
            return
        self._emit(f"debug: {message}", err=True)

    def info(self, message: str) -> None:
        if self.quiet:
            return
        self._emit(message)

    def warn(self, message: str) -> None:
        self._emit(f"warn: {message}", err=True)

    def error(self, message: str) -> None:
        self._emit(f"error: {message}", err=True)

    def result(self, message: str, *, err: bool = False) -> None:
        """Verdict lines are never suppressed by ``quiet``."""
        self._emit(message, err=err)
