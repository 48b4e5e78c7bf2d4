import gzip
import io

import pytest

from ooopipe.trace import (
    OpRecord,
    OpType,
    TraceRecord,
    open_trace,
    read_op_records,
    read_trace_records,
)


def _sample_trace_records():
    return [
        TraceRecord(
            inst_addr=0x400000 + i,
            op_type=i % 5,
            dest=i % 32,
            dest_needed=1,
            src1_reg=(i + 1) % 32,
            src2_reg=(i + 2) % 32,
            src1_needed=1,
            src2_needed=i % 2,
            cc_read=0,
            cc_write=1,
            mem_addr=0x7FFF0000 + 8 * i,
            mem_write=i % 2,
            mem_read=(i + 1) % 2,
            br_dir=1,
            br_target=0x400100 + i,
        )
        for i in range(6)
    ]


def test_op_record_round_trip():
    record = OpRecord(inst_addr=0xDEADBEEF, opcode=OpType.CBR)
    assert OpRecord.unpack(record.pack()) == record


def test_op_record_wire_bytes():
    record = OpRecord(inst_addr=0x1122334455667788, opcode=3)
    assert record.pack() == bytes.fromhex("8877665544332211") + b"\x03" + b"\x00" * 7


def test_op_record_size_matches_packed_length():
    assert len(OpRecord(1, 0).pack()) == OpRecord.SIZE == 16


def test_trace_record_round_trip():
    for record in _sample_trace_records():
        assert TraceRecord.unpack(record.pack()) == record


def test_trace_record_size_matches_packed_length():
    assert len(TraceRecord().pack()) == TraceRecord.SIZE == 48


def test_trace_record_field_placement():
    record = TraceRecord(inst_addr=5, op_type=2, mem_addr=0xABCDEF, br_target=0x123456)
    packed = record.pack()
    assert packed[:8] == (5).to_bytes(8, "little")
    assert packed[8] == 2
    assert packed[24:32] == (0xABCDEF).to_bytes(8, "little")
    assert packed[40:48] == (0x123456).to_bytes(8, "little")


def test_unpack_rejects_wrong_length():
    with pytest.raises(ValueError):
        OpRecord.unpack(b"\x00" * 5)
    with pytest.raises(ValueError):
        TraceRecord.unpack(b"\x00" * (TraceRecord.SIZE + 1))


def test_pack_rejects_out_of_range_field():
    with pytest.raises(ValueError):
        OpRecord(inst_addr=1, opcode=300).pack()


def test_read_op_records_ignores_partial_tail():
    records = [OpRecord(0x1000 + 4 * i, i % 5) for i in range(4)]
    stream = io.BytesIO(b"".join(r.pack() for r in records) + b"\x01\x02\x03")
    assert list(read_op_records(stream)) == records


def test_read_trace_records_empty_stream():
    assert list(read_trace_records(io.BytesIO(b""))) == []


def test_open_trace_reads_gzip(tmp_path):
    records = _sample_trace_records()
    path = tmp_path / "trace.gz"
    with gzip.open(path, "wb") as fh:
        fh.write(b"".join(r.pack() for r in records))
    with open_trace(path) as stream:
        assert list(read_trace_records(stream)) == records


def test_open_trace_missing_file(tmp_path):
    with pytest.raises(OSError):
        open_trace(tmp_path / "missing.gz")


def test_op_type_from_record_opcode():
    record = OpRecord.unpack(OpRecord(0, OpType.LD).pack())
    assert OpType(record.opcode) is OpType.LD