"""Trace analyzer: instruction mix, cycle count and unique PCs."""

from __future__ import annotations

import sys
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from ooopipe.trace import OpRecord, OpType, open_trace, read_op_records

_CYCLES_PER_OP = {
    OpType.ALU: 1,
    OpType.LD: 2,
    OpType.ST: 2,
    OpType.CBR: 3,
    OpType.OTHER: 1,
}

_HEADER = "LAB1"


@dataclass
class TraceStats:
    """Running statistics over a stream of OpRecords."""

    num_inst: int = 0
    num_cycle: int = 0
    op_counts: Counter = field(default_factory=Counter)
    pcs: Set[int] = field(default_factory=set)

    @property
    def unique_pc(self) -> int:
        return len(self.pcs)

    def add(self, record: OpRecord) -> None:
        """Account for one executed record."""
        self.num_inst += 1
        try:
            op = OpType(record.opcode)
        except ValueError:
            print("Opcode not qualified")
        else:
            self.op_counts[op] += 1
            self.num_cycle += _CYCLES_PER_OP[op]
        self.pcs.add(record.inst_addr)

    def cpi(self) -> float:
        """Cycles per instruction; an empty trace counts as one instruction."""
        return self.num_cycle / max(self.num_inst, 1)

    def format_report(self) -> str:
        """Render the statistics report."""
        inst = max(self.num_inst, 1)

        def line(label: str, text: str) -> str:
            return f"\n{_HEADER}_{label:<19}\t : {text}"

        parts = [
            line("NUM_INST", f"{inst:10d}"),
            line("NUM_CYCLES", f"{self.num_cycle:10d}"),
            line("CPI", f"{self.num_cycle / inst:6.3f}"),
            line("UNIQUE_PC", f"{self.unique_pc:10d}"),
            "\n",
        ]
        names = [(op, op.name) for op in OpType]
        parts.extend(line(f"NUM_{name}_OP", f"{self.op_counts[op]:10d}") for op, name in names)
        parts.append("\n")
        parts.extend(
            line(f"PERC_{name}_OP", f"{100.0 * self.op_counts[op] / inst:6.3f}")
            for op, name in names
        )
        parts.append("\n\n")
        return "".join(parts)


def analyze(records: Iterable[OpRecord]) -> TraceStats:
    """Build statistics for all records."""
    stats = TraceStats()
    for record in records:
        stats.add(record)
    return stats


def _die(message: str) -> int:
    print(f"Error! {message}. Exiting...")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Analyze the gzip trace named by the first argument and print a report."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        return _die("Must Provide a Trace File")
    path = args[0]
    try:
        with open_trace(path) as stream:
            print(f"Opened trace file: {path} ")
            stats = analyze(read_op_records(stream))
    except (OSError, EOFError):
        return _die("Unable to open the trace file")
    print(stats.format_report(), end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())