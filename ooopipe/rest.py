"""Reservation station holding renamed instructions until they are scheduled."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterator, List

from ooopipe.trace import InstInfo

MAX_REST_ENTRIES = 256
DEFAULT_REST_ENTRIES = 32

_NO_TAG = -1


@dataclass
class RESTEntry:
    """One reservation-station slot."""

    valid: bool = False
    scheduled: bool = False
    inst: InstInfo = field(default_factory=InstInfo)


class ReservationStation:
    """Fixed-size pool of instructions waiting for operands or execution."""

    def __init__(self, num_entries: int = DEFAULT_REST_ENTRIES) -> None:
        if not 0 < num_entries <= MAX_REST_ENTRIES:
            raise ValueError(
                f"reservation station size must be between 1 and {MAX_REST_ENTRIES}, "
                f"got {num_entries}"
            )
        self.num_entries = num_entries
        self.entries: List[RESTEntry] = [RESTEntry() for _ in range(num_entries)]

    def __len__(self) -> int:
        return sum(entry.valid for entry in self.entries)

    def __iter__(self) -> Iterator[RESTEntry]:
        """Iterate over the occupied entries in slot order."""
        return (entry for entry in self.entries if entry.valid)

    def _matching(self, inst: InstInfo) -> Iterator[RESTEntry]:
        return (entry for entry in self if entry.inst.inst_num == inst.inst_num)

    def has_space(self) -> bool:
        """True if at least one slot is free."""
        return any(not entry.valid for entry in self.entries)

    def insert(self, inst: InstInfo) -> None:
        """Store a copy of inst in the first free slot, not yet scheduled."""
        for index, entry in enumerate(self.entries):
            if not entry.valid:
                self.entries[index] = RESTEntry(valid=True, scheduled=False, inst=replace(inst))
                return
        raise IndexError("reservation station is full")

    def remove(self, inst: InstInfo) -> None:
        """Free every occupied slot holding the same instruction number."""
        for entry in self._matching(inst):
            entry.scheduled = False
            entry.valid = False

    def wakeup(self, tag: int) -> None:
        """Mark source operands waiting on tag as ready."""
        for entry in self:
            if entry.inst.src1_tag != _NO_TAG and entry.inst.src1_tag == tag:
                entry.inst.src1_ready = True
            if entry.inst.src2_tag != _NO_TAG and entry.inst.src2_tag == tag:
                entry.inst.src2_ready = True

    def schedule(self, inst: InstInfo) -> None:
        """Mark the first occupied slot holding the same instruction as scheduled."""
        for entry in self._matching(inst):
            entry.scheduled = True
            return

    def format_state(self) -> str:
        """Render the station for debugging."""
        lines = [
            "Printing REST \n",
            "Entry  Inst Num  S1_tag S1_ready S2_tag S2_ready  Vld Scheduled\n",
        ]
        lines.extend(
            f"{ii:5d} ::  \t\t{entry.inst.inst_num}\t"
            f"{entry.inst.src1_tag:5d}\t\t"
            f"{int(entry.inst.src1_ready):5d}\t\t"
            f"{entry.inst.src2_tag:5d}\t\t"
            f"{int(entry.inst.src2_ready):5d}\t\t"
            f"{int(entry.valid):5d}\t\t"
            f"{int(entry.scheduled):5d}\n"
            for ii, entry in enumerate(self.entries)
        )
        lines.append("\n")
        return "".join(lines)