import pytest

from ooopipe.rest import (
    DEFAULT_REST_ENTRIES,
    MAX_REST_ENTRIES,
    RESTEntry,
    ReservationStation,
)
from ooopipe.trace import InstInfo


def make_inst(num, src1_tag=-1, src2_tag=-1):
    return InstInfo(inst_num=num, src1_tag=src1_tag, src2_tag=src2_tag)


def test_new_station_is_empty_with_default_size():
    rs = ReservationStation()
    assert len(rs) == 0
    assert len(rs.entries) == DEFAULT_REST_ENTRIES
    assert rs.has_space() is True


@pytest.mark.parametrize("size", [0, -1, MAX_REST_ENTRIES + 1])
def test_invalid_size_rejected(size):
    with pytest.raises(ValueError):
        ReservationStation(size)


def test_max_size_accepted():
    rs = ReservationStation(MAX_REST_ENTRIES)
    assert len(rs.entries) == MAX_REST_ENTRIES


def test_insert_uses_first_free_slot():
    rs = ReservationStation(4)
    rs.insert(make_inst(1))
    rs.insert(make_inst(2))
    assert rs.entries[0].inst.inst_num == 1
    assert rs.entries[1].inst.inst_num == 2
    assert rs.entries[0].valid and not rs.entries[0].scheduled
    assert len(rs) == 2


def test_insert_fills_freed_slot():
    rs = ReservationStation(3)
    for n in (1, 2, 3):
        rs.insert(make_inst(n))
    rs.remove(make_inst(2))
    rs.insert(make_inst(4))
    assert rs.entries[1].inst.inst_num == 4


def test_full_station_has_no_space_and_insert_raises():
    rs = ReservationStation(2)
    rs.insert(make_inst(1))
    rs.insert(make_inst(2))
    assert rs.has_space() is False
    with pytest.raises(IndexError):
        rs.insert(make_inst(3))


def test_insert_stores_a_copy():
    rs = ReservationStation(2)
    inst = make_inst(7)
    rs.insert(inst)
    inst.inst_num = 99
    inst.src1_ready = True
    assert rs.entries[0].inst.inst_num == 7
    assert rs.entries[0].inst.src1_ready is False


def test_remove_frees_and_clears_scheduled():
    rs = ReservationStation(2)
    rs.insert(make_inst(5))
    rs.schedule(make_inst(5))
    rs.remove(make_inst(5))
    assert rs.entries[0] == RESTEntry(valid=False, scheduled=False, inst=rs.entries[0].inst)
    assert len(rs) == 0
    assert rs.has_space() is True


def test_remove_unknown_instruction_changes_nothing():
    rs = ReservationStation(2)
    rs.insert(make_inst(5))
    rs.remove(make_inst(6))
    assert len(rs) == 1


def test_wakeup_marks_matching_sources_ready():
    rs = ReservationStation(4)
    rs.insert(make_inst(1, src1_tag=3, src2_tag=5))
    rs.insert(make_inst(2, src1_tag=5, src2_tag=3))
    rs.wakeup(3)
    assert rs.entries[0].inst.src1_ready is True
    assert rs.entries[0].inst.src2_ready is False
    assert rs.entries[1].inst.src1_ready is False
    assert rs.entries[1].inst.src2_ready is True


def test_wakeup_with_no_tag_does_nothing():
    rs = ReservationStation(2)
    rs.insert(make_inst(1))
    rs.wakeup(-1)
    assert rs.entries[0].inst.src1_ready is False
    assert rs.entries[0].inst.src2_ready is False


def test_wakeup_ignores_free_slots():
    rs = ReservationStation(2)
    rs.insert(make_inst(1, src1_tag=4))
    rs.remove(make_inst(1))
    rs.wakeup(4)
    assert rs.entries[0].inst.src1_ready is False


def test_schedule_marks_matching_entry():
    rs = ReservationStation(3)
    rs.insert(make_inst(1))
    rs.insert(make_inst(2))
    rs.schedule(make_inst(2))
    assert [e.scheduled for e in rs.entries] == [False, True, False]


def test_iteration_yields_only_occupied_entries():
    rs = ReservationStation(4)
    for n in (1, 2, 3):
        rs.insert(make_inst(n))
    rs.remove(make_inst(2))
    assert [e.inst.inst_num for e in rs] == [1, 3]


def test_format_state_layout():
    rs = ReservationStation(3)
    rs.insert(make_inst(9, src1_tag=2))
    text = rs.format_state()
    lines = text.split("\n")
    assert lines[0] == "Printing REST "
    assert lines[1] == "Entry  Inst Num  S1_tag S1_ready S2_tag S2_ready  Vld Scheduled"
    assert len(lines) == 2 + rs.num_entries + 2
    assert lines[2].startswith("    0 ::  \t\t9\t")
    assert text.endswith("\n\n")