"""Reorder buffer: a circular queue of in-flight instructions, committed in order."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List

from ooopipe.trace import InstInfo

MAX_ROB_ENTRIES = 256
DEFAULT_ROB_ENTRIES = 32


@dataclass
class ROBEntry:
    """One reorder-buffer slot."""

    valid: bool = False
    ready: bool = False
    inst: InstInfo = field(default_factory=InstInfo)


class ROB:
    """Circular reorder buffer whose slot indices double as rename tags."""

    def __init__(self, num_entries: int = DEFAULT_ROB_ENTRIES) -> None:
        if not 0 < num_entries <= MAX_ROB_ENTRIES:
            raise ValueError(
                f"ROB size must be between 1 and {MAX_ROB_ENTRIES}, got {num_entries}"
            )
        self.num_entries = num_entries
        self.entries: List[ROBEntry] = [ROBEntry() for _ in range(num_entries)]
        self.head = 0
        self.tail = 0

    def __len__(self) -> int:
        return sum(entry.valid for entry in self.entries)

    def has_space(self) -> bool:
        """True unless the tail has caught up with a still-occupied head."""
        return not (self.tail == self.head and self.entries[self.head].valid)

    def insert(self, inst: InstInfo) -> int:
        """Place a copy of inst at the tail and return its tag (the slot index)."""
        if not self.has_space():
            raise IndexError("ROB is full")
        tag = self.tail
        self.entries[tag] = ROBEntry(valid=True, ready=False, inst=replace(inst, dr_tag=tag))
        self.tail = (self.tail + 1) % self.num_entries
        return tag

    def mark_ready(self, inst: InstInfo) -> None:
        """Mark the valid entry holding the same instruction number as finished."""
        for entry in self.entries:
            if entry.valid and entry.inst.inst_num == inst.inst_num:
                entry.ready = True
                return

    def is_ready(self, tag: int) -> bool:
        """True if the entry for tag is occupied and has finished executing."""
        if not 0 <= tag < self.num_entries:
            raise IndexError(f"ROB tag {tag} out of range")
        entry = self.entries[tag]
        return entry.valid and entry.ready

    def head_ready(self) -> bool:
        """True if the oldest entry can commit."""
        entry = self.entries[self.head]
        return entry.valid and entry.ready

    def remove_head(self) -> InstInfo:
        """Retire the oldest entry and return its instruction."""
        entry = self.entries[self.head]
        if not entry.valid:
            raise IndexError("remove from empty ROB")
        committed = entry.inst
        entry.valid = False
        entry.ready = False
        self.head = (self.head + 1) % self.num_entries
        return committed

    def format_state(self) -> str:
        """Render the buffer for debugging."""
        lines = ["Printing ROB \n", "Entry  Inst   Valid   ready\n"]
        lines.extend(
            f"{ii:5d} ::  {entry.inst.inst_num}\t {int(entry.valid):5d}\t {int(entry.ready):5d}\n"
            for ii, entry in enumerate(self.entries)
        )
        lines.append("\n")
        return "".join(lines)