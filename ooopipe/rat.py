"""Register alias table mapping architectural registers to ROB tags."""

from __future__ import annotations

from dataclasses import dataclass

MAX_ARF_REGS = 32
ARF_TAG = -1


@dataclass
class RATEntry:
    """One alias entry; prf_id is meaningful only while valid."""

    valid: bool = False
    prf_id: int = 0


class RAT:
    """Register alias table with one entry per architectural register."""

    def __init__(self, num_regs: int = MAX_ARF_REGS) -> None:
        self.entries = [RATEntry() for _ in range(num_regs)]

    def _entry(self, arf_id: int) -> RATEntry:
        if not 0 <= arf_id < len(self.entries):
            raise IndexError(f"architectural register {arf_id} out of range")
        return self.entries[arf_id]

    def get_remap(self, arf_id: int) -> int:
        """Return the renamed tag, or ARF_TAG when the value lives in the ARF."""
        entry = self._entry(arf_id)
        return entry.prf_id if entry.valid else ARF_TAG

    def set_remap(self, arf_id: int, prf_id: int) -> None:
        """Point an architectural register at a new physical tag."""
        entry = self._entry(arf_id)
        entry.prf_id = prf_id
        entry.valid = True

    def reset_entry(self, arf_id: int) -> None:
        """Drop the mapping so the register reads from the ARF again."""
        self._entry(arf_id).valid = False

    def format_state(self) -> str:
        """Render the table for debugging."""
        lines = ["Printing RAT \n", "Entry  Valid  prf_id\n"]
        lines.extend(
            f"{ii:5d} ::  {int(entry.valid)} \t\t{entry.prf_id:5d} \n"
            for ii, entry in enumerate(self.entries)
        )
        lines.append("\n")
        return "".join(lines)