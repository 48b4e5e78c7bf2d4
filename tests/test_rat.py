import pytest

from ooopipe.rat import ARF_TAG, MAX_ARF_REGS, RAT


def test_fresh_table_reads_from_arf():
    rat = RAT()
    assert all(rat.get_remap(reg) == ARF_TAG for reg in range(MAX_ARF_REGS))


def test_set_remap_then_get():
    rat = RAT()
    rat.set_remap(5, 17)
    assert rat.get_remap(5) == 17
    assert rat.get_remap(6) == ARF_TAG


def test_set_remap_overrides_previous_mapping():
    rat = RAT()
    rat.set_remap(2, 3)
    rat.set_remap(2, 9)
    assert rat.get_remap(2) == 9


def test_reset_entry_restores_arf():
    rat = RAT()
    rat.set_remap(7, 11)
    rat.reset_entry(7)
    assert rat.get_remap(7) == ARF_TAG
    rat.set_remap(7, 12)
    assert rat.get_remap(7) == 12


@pytest.mark.parametrize("reg", [-1, MAX_ARF_REGS])
def test_out_of_range_register(reg):
    rat = RAT()
    with pytest.raises(IndexError):
        rat.get_remap(reg)
    with pytest.raises(IndexError):
        rat.set_remap(reg, 0)
    with pytest.raises(IndexError):
        rat.reset_entry(reg)


def test_format_state_layout():
    rat = RAT()
    rat.set_remap(3, 7)
    state = rat.format_state()
    assert state.startswith("Printing RAT \nEntry  Valid  prf_id\n")
    assert state.endswith("\n\n")
    entry_lines = [line for line in state.splitlines() if "::" in line]
    assert len(entry_lines) == MAX_ARF_REGS
    assert state.count("::  1 ") == 1
    assert entry_lines[3].split("::")[1].split() == ["1", "7"]