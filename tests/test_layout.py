import pytest

from ptgen.errors import InvalidPartition, OutOfSpace, OverlapError, TooManyPartitions
from ptgen.layout import plan
from ptgen.model import ComputedPartition, DiskConfig, PartitionRequest, TableKind

MBR = DiskConfig(heads=16, sectors=63)
GPT = DiskConfig(table=TableKind.GPT)


def assert_increasing(parts):
    for prev, cur in zip(parts, parts[1:]):
        assert prev.start < prev.end <= cur.start < cur.end


def test_mbr_first_partition_starts_after_one_track():
    parts = plan([PartitionRequest(2048), PartitionRequest(4096)], MBR)
    assert parts[0].start == 63
    assert parts[0].end == 3024
    assert parts[1].start == 3024 + 63
    assert parts[1].end == 8064
    for part in parts:
        assert part.end % (16 * 63) == 0


def test_mbr_aligned_partitions_skip_cylinder_rounding():
    config = DiskConfig(heads=16, sectors=63, align=2048)
    parts = plan([PartitionRequest(2048), PartitionRequest(100)], config)
    assert parts[0] == ComputedPartition(0, 2048, 4096)
    assert parts[1] == ComputedPartition(1, 6144, 6244)


def test_gpt_starts_at_first_usable():
    parts = plan([PartitionRequest(100), PartitionRequest(50)], GPT)
    assert parts == [ComputedPartition(0, 34, 134), ComputedPartition(1, 134, 184)]


def test_gpt_first_usable_follows_entry_offset():
    config = DiskConfig(table=TableKind.GPT, first_entry=4)
    assert plan([PartitionRequest(8)], config)[0].start == 36


def test_alignment_applies_to_automatic_starts_only():
    config = DiskConfig(table=TableKind.GPT, align=2048)
    requests = [PartitionRequest(100), PartitionRequest(100, start=5000), PartitionRequest(7)]
    parts = plan(requests, config)
    assert [p.start for p in parts] == [2048, 5000, 6144]
    assert_increasing(parts)


def test_explicit_start_zero_means_automatic():
    parts = plan([PartitionRequest(8192, start=0)], GPT)
    assert parts[0].start == 34


def test_explicit_start_before_cursor():
    with pytest.raises(OverlapError) as exc:
        plan([PartitionRequest(100), PartitionRequest(100, start=50)], GPT)
    assert exc.value.index == 1
    assert exc.value.cursor == 134


def test_mbr_explicit_start_inside_reserved_track():
    with pytest.raises(OverlapError):
        plan([PartitionRequest(100, start=10)], MBR)


def test_zero_size_fails_without_skip_policy():
    with pytest.raises(InvalidPartition) as exc:
        plan([PartitionRequest(100), PartitionRequest(0)], GPT)
    assert exc.value.index == 1


def test_zero_size_skipped_keeps_index_and_cursor():
    config = DiskConfig(table=TableKind.GPT, ignore_null_sized=True)
    parts = plan([PartitionRequest(0), PartitionRequest(100)], config)
    assert parts == [ComputedPartition(1, 34, 134)]


def test_last_usable_bound():
    config = DiskConfig(table=TableKind.GPT, last_usable=100)
    assert plan([PartitionRequest(67)], config)[0].end == 101
    with pytest.raises(OutOfSpace):
        plan([PartitionRequest(68)], config)


def test_too_many_partitions():
    with pytest.raises(TooManyPartitions):
        plan([PartitionRequest(1)] * 5, MBR)
    with pytest.raises(TooManyPartitions):
        plan([PartitionRequest(1)] * 129, GPT)
    assert len(plan([PartitionRequest(1)] * 128, GPT)) == 128


@pytest.mark.parametrize("config", [
    MBR,
    DiskConfig(heads=255, sectors=63, align=8),
    GPT,
    DiskConfig(table=TableKind.GPT, align=2048),
])
def test_ranges_strictly_increasing(config):
    sizes = [1, 2048, 7, 4096]
    parts = plan([PartitionRequest(s) for s in sizes], config)
    assert len(parts) == 4
    assert_increasing(parts)
    if config.align:
        assert all(p.start % config.align == 0 for p in parts)


def test_plan_is_deterministic():
    requests = [PartitionRequest(s) for s in (300, 10, 2048)]
    assert plan(requests, GPT) == plan(requests, GPT)
