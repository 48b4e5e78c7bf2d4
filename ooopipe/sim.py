"""Command-line driver for the out-of-order pipeline simulator."""

from __future__ import annotations

import math
import os
import sys
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, TextIO, Union

from ooopipe.pipeline import Pipeline, PipelineConfig
from ooopipe.trace import open_trace, read_trace_records

HEARTBEAT_CYCLES = 10000
_LINE_EVERY = 50 * HEARTBEAT_CYCLES
_HEADER = "LAB3"
_U32 = 0xFFFFFFFF

_USAGE = (
    "Usage : sim [options] <trace_file> \n\n"
    "Trace driven pipeline simulator\n"
    "Options\n"
    "   -pipewidth   <num>    Set width of pipeline to <num> (Default: 1)\n"
    "   -schedpolicy <num>    Scheduling policy [0:inorder 1:outoforder]  (Default: 1)\n"
    "   -loadlatency <num>    Number of cycles for LD to execute  (Default: 4)\n"
)

_OPTION_FIELDS = {
    "-pipewidth": "pipe_width",
    "-schedpolicy": "sched_policy",
    "-loadlatency": "load_exe_cycles",
}


class DeadlockError(RuntimeError):
    """Raised when no instruction commits during a whole heartbeat interval."""


class _Arguments(NamedTuple):
    path: Optional[str]
    config: PipelineConfig
    show_help: bool


@dataclass
class Heartbeat:
    """Periodic progress printer and deadlock detector."""

    out: Optional[TextIO] = None
    last_cycle: int = 0
    last_line: int = 0
    last_inst: int = 0

    def check(self, pipeline: Pipeline) -> None:
        """Print progress every HEARTBEAT_CYCLES cycles; raise if nothing committed."""
        if pipeline.num_cycle - self.last_cycle < HEARTBEAT_CYCLES:
            return
        out = self.out if self.out is not None else sys.stdout
        print(".", end="", file=out, flush=True)

        if self.last_inst == pipeline.retired_inst:
            raise DeadlockError(f"No committed instructions in {HEARTBEAT_CYCLES} cycles.")

        self.last_cycle = pipeline.num_cycle
        self.last_inst = pipeline.retired_inst

        if pipeline.num_cycle - self.last_line >= _LINE_EVERY:
            cpi = pipeline.num_cycle / (pipeline.retired_inst + 1)
            print(
                f"\n(Inst:{pipeline.retired_inst & _U32:8d}\t"
                f"Cycle:{pipeline.num_cycle & _U32:8d}\tCPI:{cpi:6.3f})\t",
                end="",
                file=out,
            )
            self.last_line = pipeline.num_cycle


def _atoi(text: str) -> int:
    """Leading-integer conversion: optional sign then digits; anything else gives 0."""
    stripped = text.lstrip()
    sign = 1
    if stripped[:1] in ("+", "-"):
        sign = -1 if stripped[0] == "-" else 1
        stripped = stripped[1:]
    digits = ""
    for char in stripped:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


def parse_args(argv: List[str]) -> _Arguments:
    """Parse simulator arguments into (path, config, show_help).

    Unknown options are ignored, an option missing its value is ignored and
    the last non-option argument names the trace file.
    """
    values = {}
    path: Optional[str] = None
    show_help = False
    args = iter(argv)
    for arg in args:
        if not arg.startswith("-"):
            path = arg
        elif arg in ("-h", "-help"):
            show_help = True
        elif arg in _OPTION_FIELDS:
            value = next(args, None)
            if value is not None:
                values[_OPTION_FIELDS[arg]] = _atoi(value)
    return _Arguments(path, PipelineConfig(**values), show_help)


def format_stats(pipeline: Pipeline) -> str:
    """Render the final statistics report."""
    insts = pipeline.retired_inst
    cycles = pipeline.num_cycle
    if insts:
        cpi = cycles / insts
    else:
        cpi = math.nan if cycles == 0 else math.inf

    def line(label: str, text: str) -> str:
        return f"\n{_HEADER}_{label:<19}\t : {text}"

    return (
        "\n\n"
        + line("NUM_INST", f"{insts & _U32:10d}")
        + line("NUM_CYCLES", f"{cycles & _U32:10d}")
        + line("CPI", f"{cpi:10.3f}")
        + "\n\n"
    )


def simulate(path: Union[str, os.PathLike], config: Optional[PipelineConfig] = None) -> Pipeline:
    """Run the gzip trace at path through a pipeline until it halts."""
    config = config if config is not None else PipelineConfig()
    heartbeat = Heartbeat()
    with open_trace(path) as stream:
        print(f"\n** PIPELINE IS {config.pipe_width} WIDE **\n")
        pipeline = Pipeline(read_trace_records(stream), config)
        print("\n" + " " * 48, end="")
        while not pipeline.halt:
            pipeline.cycle()
            heartbeat.check(pipeline)
    return pipeline


def _die(message: str) -> int:
    print(f"Error! {message}. Exiting...")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point: parse arguments, simulate the trace and print statistics."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        parsed = parse_args(args)
    except ValueError as exc:
        return _die(str(exc))
    if parsed.show_help:
        print(_USAGE, end="")
        return 0
    if parsed.path is None:
        return _die("Must Provide a Trace File")
    try:
        print(f"Opened trace file: {parsed.path} ")
        pipeline = simulate(parsed.path, parsed.config)
    except (OSError, EOFError):
        return _die("Unable to open the trace file")
    except DeadlockError as exc:
        print(exc)
        return _die("Pipeline is Deadlocked. Dying")
    print(format_stats(pipeline), end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())