"""Execution queue holding instructions while multi-cycle operations complete."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List

from ooopipe.trace import InstInfo, OpType

MAX_EXEQ_ENTRIES = 16
DEFAULT_LOAD_EXE_CYCLES = 4


class ExecutionQueueError(RuntimeError):
    """Raised on inserting into a full queue or removing when nothing is done."""


@dataclass
class _Slot:
    valid: bool = False
    inst: InstInfo = field(default_factory=InstInfo)


class ExecutionQueue:
    """Fixed-size pool of executing instructions, each with a countdown."""

    def __init__(
        self,
        load_exe_cycles: int = DEFAULT_LOAD_EXE_CYCLES,
        num_entries: int = MAX_EXEQ_ENTRIES,
    ) -> None:
        self.load_exe_cycles = load_exe_cycles
        self.slots: List[_Slot] = [_Slot() for _ in range(num_entries)]

    def __len__(self) -> int:
        return sum(slot.valid for slot in self.slots)

    def cycle(self) -> None:
        """Advance one cycle: every occupied slot waits one cycle less."""
        for slot in self.slots:
            if slot.valid:
                slot.inst.exe_wait_cycles -= 1

    def insert(self, inst: InstInfo) -> None:
        """Start executing a copy of inst; loads take load_exe_cycles, others one."""
        wait = self.load_exe_cycles if inst.op_type == OpType.LD else 1
        for slot in self.slots:
            if not slot.valid:
                slot.valid = True
                slot.inst = replace(inst, exe_wait_cycles=wait)
                return
        raise ExecutionQueueError("trying to install in full EXEQ")

    def has_done(self) -> bool:
        """True if some occupied slot has finished waiting."""
        return any(slot.valid and slot.inst.exe_wait_cycles == 0 for slot in self.slots)

    def remove(self) -> InstInfo:
        """Take out the first finished instruction."""
        for slot in self.slots:
            if slot.valid and slot.inst.exe_wait_cycles == 0:
                slot.valid = False
                return slot.inst
        raise ExecutionQueueError("trying to remove entry from empty EXEQ")

    def format_state(self) -> str:
        """Render the queue for debugging."""
        lines = ["Printing EXEQ \n", "Entry  Valid  inst  Wait Cycles\n"]
        lines.extend(
            f"{ii:5d} ::  {int(slot.valid)} {slot.inst.inst_num:5d} \t"
            f"{slot.inst.exe_wait_cycles:5d} \n"
            for ii, slot in enumerate(self.slots)
        )
        lines.append("\n")
        return "".join(lines)