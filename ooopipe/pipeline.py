"""Out-of-order pipeline: fetch, decode, rename, schedule, execute, broadcast, commit."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Iterable, List, Optional

from ooopipe.exeq import ExecutionQueue
from ooopipe.rat import ARF_TAG, RAT
from ooopipe.rest import DEFAULT_REST_ENTRIES, ReservationStation
from ooopipe.rob import DEFAULT_ROB_ENTRIES, ROB
from ooopipe.trace import InstInfo, OpType, TraceRecord

MAX_PIPE_WIDTH = 8
MAX_BROADCASTS = 256

_NOT_NEEDED = -1


class SchedPolicy(IntEnum):
    """How the scheduler picks instructions from the reservation station."""

    IN_ORDER = 0
    OUT_OF_ORDER = 1


@dataclass(frozen=True)
class PipelineConfig:
    """Machine parameters of the simulated pipeline."""

    pipe_width: int = 1
    sched_policy: SchedPolicy = SchedPolicy.OUT_OF_ORDER
    load_exe_cycles: int = 4
    num_rest_entries: int = DEFAULT_REST_ENTRIES
    num_rob_entries: int = DEFAULT_ROB_ENTRIES

    def __post_init__(self) -> None:
        if not 1 <= self.pipe_width <= MAX_PIPE_WIDTH:
            raise ValueError(
                f"pipeline width must be between 1 and {MAX_PIPE_WIDTH}, got {self.pipe_width}"
            )
        if self.load_exe_cycles < 1:
            raise ValueError(f"load latency must be at least 1, got {self.load_exe_cycles}")
        object.__setattr__(self, "sched_policy", SchedPolicy(self.sched_policy))


@dataclass
class Latch:
    """A pipeline latch between two stages."""

    valid: bool = False
    stall: bool = False
    inst: InstInfo = field(default_factory=InstInfo)


def _copy_latch(latch: Latch) -> Latch:
    return Latch(valid=latch.valid, stall=latch.stall, inst=replace(latch.inst))


def _latch_order(latch: Latch) -> tuple:
    return (0, latch.inst.inst_num) if latch.valid else (1, 0)


class Pipeline:
    """Trace-driven out-of-order pipeline simulator."""

    def __init__(
        self,
        records: Iterable[TraceRecord],
        config: Optional[PipelineConfig] = None,
    ) -> None:
        self.config = config if config is not None else PipelineConfig()
        width = self.config.pipe_width
        self._records = iter(records)
        self.rat = RAT()
        self.rob = ROB(self.config.num_rob_entries)
        self.rest = ReservationStation(self.config.num_rest_entries)
        self.exeq = ExecutionQueue(self.config.load_exe_cycles)
        self.fe_latches: List[Latch] = [Latch() for _ in range(width)]
        self.id_latches: List[Latch] = [Latch() for _ in range(width)]
        self.sc_latches: List[Latch] = [Latch() for _ in range(width)]
        self.ex_latches: List[Latch] = [Latch() for _ in range(MAX_BROADCASTS)]
        self.inst_num_tracker = 0
        self.halt_inst_num = (1 << 64) - 1 - 3
        self.halt = False
        self.retired_inst = 0
        self.num_cycle = 0
        self._fetch_halted = False
        self._next_decode = 1

    # ------------------------------------------------------------------

    def cycle(self) -> None:
        """Run one cycle, stages processed from the back of the pipe forward."""
        self.num_cycle += 1
        self.commit()
        self.broadcast()
        self.execute()
        self.schedule()
        self.rename()
        self.decode()
        self.fetch()

    def run(self) -> None:
        """Cycle until the last instruction of the trace has committed."""
        while not self.halt:
            self.cycle()

    # ------------------------------------------------------------------

    def _fetch_inst(self) -> Latch:
        if self._fetch_halted:
            return Latch()
        record = next(self._records, None)
        if record is None:
            self.halt_inst_num = self.inst_num_tracker
            self._fetch_halted = True
            return Latch(inst=InstInfo(inst_num=-1, op_type=OpType.OTHER))
        self.inst_num_tracker += 1
        inst = InstInfo(
            inst_num=self.inst_num_tracker,
            op_type=record.op_type,
            dest_reg=record.dest if record.dest_needed else _NOT_NEEDED,
            src1_reg=record.src1_reg if record.src1_needed else _NOT_NEEDED,
            src2_reg=record.src2_reg if record.src2_needed else _NOT_NEEDED,
        )
        return Latch(valid=True, stall=False, inst=inst)

    def fetch(self) -> None:
        """Fill every empty, unstalled fetch latch from the trace."""
        for index, latch in enumerate(self.fe_latches):
            if latch.stall or latch.valid:
                continue
            self.fe_latches[index] = self._fetch_inst()

    def decode(self) -> None:
        """Move fetched instructions into decode latches in program order."""
        for index, latch in enumerate(self.id_latches):
            if latch.stall or latch.valid:
                continue
            source = next(
                (
                    fe
                    for fe in self.fe_latches
                    if fe.valid and fe.inst.inst_num == self._next_decode
                ),
                None,
            )
            if source is None:
                continue
            moved = _copy_latch(source)
            moved.valid = True
            self.id_latches[index] = moved
            source.valid = False
            self._next_decode += 1

    def _is_src_ready(self, reg: int, tag: int) -> bool:
        return reg == _NOT_NEEDED or tag == ARF_TAG or self.rob.is_ready(tag)

    def rename(self) -> None:
        """Allocate ROB and reservation-station entries, renaming operands."""
        self.id_latches.sort(key=_latch_order)
        last_stall = False
        for latch in self.id_latches:
            latch.stall = last_stall
            if not latch.valid or latch.stall:
                continue
            if self.rob.has_space() and self.rest.has_space():
                inst = latch.inst
                if inst.src1_reg != _NOT_NEEDED:
                    inst.src1_tag = self.rat.get_remap(inst.src1_reg)
                if inst.src2_reg != _NOT_NEEDED:
                    inst.src2_tag = self.rat.get_remap(inst.src2_reg)
                inst.dr_tag = self.rob.insert(inst)
                if inst.dest_reg != _NOT_NEEDED:
                    self.rat.set_remap(inst.dest_reg, inst.dr_tag)
                if self._is_src_ready(inst.src1_reg, inst.src1_tag):
                    inst.src1_ready = True
                if self._is_src_ready(inst.src2_reg, inst.src2_tag):
                    inst.src2_ready = True
                self.rest.insert(inst)
                latch.valid = False
            else:
                latch.stall = True
            last_stall = latch.stall

    def _pick_oldest(self) -> Optional[InstInfo]:
        candidates = [entry.inst for entry in self.rest if not entry.scheduled]
        if self.config.sched_policy == SchedPolicy.OUT_OF_ORDER:
            candidates = [inst for inst in candidates if inst.src1_ready and inst.src2_ready]
        if not candidates:
            return None
        return min(candidates, key=lambda inst: inst.inst_num)

    def schedule(self) -> None:
        """Send ready instructions from the reservation station to execution."""
        for latch in self.sc_latches:
            oldest = self._pick_oldest()
            if oldest is None:
                continue
            if not latch.valid and oldest.src1_ready and oldest.src2_ready:
                self.rest.schedule(oldest)
                latch.inst = replace(oldest)
                latch.valid = True

    def execute(self) -> None:
        """Execute scheduled instructions; multi-cycle loads wait in the EXEQ."""
        if self.config.load_exe_cycles == 1:
            for index, latch in enumerate(self.sc_latches):
                if latch.valid:
                    done = _copy_latch(latch)
                    done.valid = True
                    self.ex_latches[index] = done
                    latch.valid = False
            return

        for latch in self.sc_latches:
            if latch.valid:
                self.exeq.insert(latch.inst)
                latch.valid = False

        self.exeq.cycle()

        finished = []
        while self.exeq.has_done():
            finished.append(self.exeq.remove())
        for index, inst in enumerate(finished):
            self.ex_latches[index] = Latch(valid=True, stall=False, inst=inst)

    def broadcast(self) -> None:
        """Wake up dependants of finished instructions and mark them done in the ROB."""
        for latch in self.ex_latches:
            if not latch.valid:
                continue
            finished = latch.inst
            latch.valid = False
            self.rest.wakeup(finished.dr_tag)
            self.rest.remove(finished)
            self.rob.mark_ready(finished)

    def commit(self) -> None:
        """Retire up to pipe_width finished instructions from the ROB head."""
        for _ in range(self.config.pipe_width):
            if not self.rob.head_ready():
                break
            committed = self.rob.remove_head()
            if (
                committed.dest_reg != _NOT_NEEDED
                and self.rat.get_remap(committed.dest_reg) == committed.dr_tag
            ):
                self.rat.reset_entry(committed.dest_reg)
            self.retired_inst += 1
            if committed.inst_num >= self.halt_inst_num:
                self.halt = True

    # ------------------------------------------------------------------

    def format_state(self) -> str:
        """Render latches and all internal structures for debugging."""
        parts = [
            "--------------------------------------------\n",
            f"cycle count : {self.num_cycle} retired_instruction : {self.retired_inst}\n",
            " FE:  ID:  SCH:  EX: \n",
        ]

        def cell(latch: Latch) -> str:
            return f"  {latch.inst.inst_num}  " if latch.valid else " --  "

        for fe, de, sc, ex in zip(
            self.fe_latches, self.id_latches, self.sc_latches, self.ex_latches
        ):
            row = cell(fe) + cell(de) + cell(sc)
            if ex.valid:
                row += "".join(
                    f"  {latch.inst.inst_num}  " for latch in self.ex_latches if latch.valid
                )
            else:
                row += " --  "
            parts.append(row + "\n")
        parts.append("\n")
        parts.append(self.rat.format_state())
        parts.append(self.rest.format_state())
        parts.append(self.exeq.format_state())
        parts.append(self.rob.format_state())
        return "".join(parts)