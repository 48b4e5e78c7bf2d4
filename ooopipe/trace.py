"""Binary trace record formats, in-flight instruction state and trace readers."""

from __future__ import annotations

import gzip
import os
import struct
from dataclasses import astuple, dataclass
from enum import IntEnum
from typing import BinaryIO, ClassVar, Iterator, Type, TypeVar, Union

# Little-endian layouts that include the alignment padding of the on-disk records.
_OP_STRUCT = struct.Struct("<QB7x")
_TRACE_STRUCT = struct.Struct("<Q8BB7xQ3B5xQ")

_R = TypeVar("_R", "OpRecord", "TraceRecord")


class OpType(IntEnum):
    """Instruction class carried by a trace record."""

    ALU = 0
    LD = 1
    ST = 2
    CBR = 3
    OTHER = 4


def _pack(layout: struct.Struct, values: tuple) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"field out of range: {exc}") from exc


def _unpack(layout: struct.Struct, data: bytes) -> tuple:
    if len(data) != layout.size:
        raise ValueError(f"expected {layout.size} bytes, got {len(data)}")
    return layout.unpack(data)


@dataclass(frozen=True)
class OpRecord:
    """A minimal trace record: instruction address and opcode."""

    inst_addr: int
    opcode: int

    SIZE: ClassVar[int] = _OP_STRUCT.size

    def pack(self) -> bytes:
        return _pack(_OP_STRUCT, (self.inst_addr, self.opcode))

    @classmethod
    def unpack(cls, data: bytes) -> "OpRecord":
        return cls(*_unpack(_OP_STRUCT, bytes(data)))


@dataclass(frozen=True)
class TraceRecord:
    """A full trace record with register, memory and branch information."""

    inst_addr: int = 0
    op_type: int = 0
    dest: int = 0
    dest_needed: int = 0
    src1_reg: int = 0
    src2_reg: int = 0
    src1_needed: int = 0
    src2_needed: int = 0
    cc_read: int = 0
    cc_write: int = 0
    mem_addr: int = 0
    mem_write: int = 0
    mem_read: int = 0
    br_dir: int = 0
    br_target: int = 0

    SIZE: ClassVar[int] = _TRACE_STRUCT.size

    def pack(self) -> bytes:
        return _pack(_TRACE_STRUCT, astuple(self))

    @classmethod
    def unpack(cls, data: bytes) -> "TraceRecord":
        return cls(*_unpack(_TRACE_STRUCT, bytes(data)))


@dataclass
class InstInfo:
    """State of one instruction as it moves through the pipeline.

    Register fields hold -1 when the operand is not needed; tag fields
    hold -1 when no rename tag applies.
    """

    inst_num: int = 0
    op_type: int = OpType.ALU
    dest_reg: int = -1
    src1_reg: int = -1
    src2_reg: int = -1
    dr_tag: int = -1
    src1_tag: int = -1
    src2_tag: int = -1
    src1_ready: bool = False
    src2_ready: bool = False
    exe_wait_cycles: int = 0


def open_trace(path: Union[str, os.PathLike]) -> BinaryIO:
    """Open a gzip-compressed trace file for binary reading."""
    return gzip.open(path, "rb")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _iter_records(stream: BinaryIO, cls: Type[_R]) -> Iterator[_R]:
    while True:
        data = _read_exact(stream, cls.SIZE)
        if len(data) < cls.SIZE:
            return
        yield cls.unpack(data)


def read_op_records(stream: BinaryIO) -> Iterator[OpRecord]:
    """Yield complete OpRecords; a trailing partial record is ignored."""
    return _iter_records(stream, OpRecord)


def read_trace_records(stream: BinaryIO) -> Iterator[TraceRecord]:
    """Yield complete TraceRecords; a trailing partial record is ignored."""
    return _iter_records(stream, TraceRecord)