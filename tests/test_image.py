import pytest

from ptgen import (ConfigError, DiskConfig, InvalidPartition, PartitionRequest, TableKind,
                   format_report, generate)
from ptgen.crc import crc32
from ptgen.gpt import GptHeader, unpack_entries
from ptgen.mbr import parse_mbr


def check_crcs(header_raw, entries_raw):
    header = GptHeader.unpack(header_raw)
    raw = bytearray(header_raw[:92])
    raw[16:20] = bytes(4)
    assert crc32(raw) == header.header_crc
    assert crc32(entries_raw) == header.entries_crc
    return header


def test_scenario_mbr_two_partitions(tmp_path):
    out = tmp_path / "mbr.img"
    config = DiskConfig(heads=16, sectors=63)
    parts = generate([PartitionRequest(2048), PartitionRequest(4096)], config, str(out))

    assert parts[0].start == 63
    assert parts[0].end % 1008 == 0
    assert parts[1].end % 1008 == 0

    data = out.read_bytes()
    assert len(data) == 512
    _, entries = parse_mbr(data)
    for part, entry in zip(parts, entries):
        assert entry.lba_start * 512 == part.offset
        assert entry.lba_length * 512 == part.byte_length
    assert format_report(parts) == "32256\n1516032\n1580544\n2548224\n"


def test_scenario_gpt_sized_to_partition(tmp_path):
    out = tmp_path / "gpt.img"
    config = DiskConfig(table=TableKind.GPT)
    parts = generate([PartitionRequest(8192, start=0)], config, str(out))

    data = out.read_bytes()
    assert len(data) == 1024 + 128 * 128
    header = check_crcs(data[512:1024], data[1024:])
    assert header.last_usable_lba == parts[0].end - 1
    assert data[512 + 92:1024] == bytes(420)

    _, entries = parse_mbr(data[:512])
    assert entries[0].type == 0xEE
    assert entries[0].lba_start == 1
    assert entries[0].lba_length == header.last_usable_lba + 32 + 1
    assert format_report(parts) == f"{34 * 512}\n{8192 * 512}\n"


def test_scenario_zero_size_writes_nothing(tmp_path):
    out = tmp_path / "bad.img"
    with pytest.raises(InvalidPartition):
        generate([PartitionRequest(0)], DiskConfig(heads=16, sectors=63), str(out))
    assert not out.exists()


def test_scenario_split_with_backup(tmp_path):
    prefix = tmp_path / "disk"
    config = DiskConfig(table=TableKind.GPT, split=True, backup=True)
    generate([PartitionRequest(2048), PartitionRequest(4096)], config, str(prefix))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["disk.end", "disk.start"]
    head = (tmp_path / "disk.start").read_bytes()
    tail = (tmp_path / "disk.end").read_bytes()
    assert len(head) == 1024 + 16384
    assert len(tail) == 16384 + 512

    primary = check_crcs(head[512:1024], head[1024:])
    backup = check_crcs(tail[16384:], tail[:16384])
    assert primary.disk_guid == backup.disk_guid
    assert primary.my_lba == backup.alternate_lba == 1
    assert primary.alternate_lba == backup.my_lba
    assert backup.entries_lba == backup.my_lba - 32
    assert unpack_entries(head[1024:]) == unpack_entries(tail[:16384])


def test_split_with_moved_entry_array(tmp_path):
    prefix = tmp_path / "disk"
    config = DiskConfig(table=TableKind.GPT, split=True, backup=True, first_entry=4)
    parts = generate([PartitionRequest(100)], config, str(prefix))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["disk.end", "disk.entry", "disk.start"]
    head = (tmp_path / "disk.start").read_bytes()
    entries = (tmp_path / "disk.entry").read_bytes()
    assert len(head) == 1024
    primary = check_crcs(head[512:1024], entries)
    assert primary.entries_lba == 4
    assert parts[0].start == primary.first_usable_lba == 36


def test_single_image_with_backup(tmp_path):
    out = tmp_path / "full.img"
    config = DiskConfig(table=TableKind.GPT, backup=True)
    generate([PartitionRequest(2048)], config, str(out))

    data = out.read_bytes()
    alternate = 34 + 2048 - 1 + 33
    assert len(data) == (alternate + 1) * 512
    backup = check_crcs(data[alternate * 512:], data[(alternate - 32) * 512:alternate * 512])
    assert backup.my_lba == alternate
    assert data[34 * 512:(alternate - 32) * 512] == bytes((alternate - 66) * 512)


def test_config_errors(tmp_path):
    with pytest.raises(ConfigError):
        generate([PartitionRequest(8)], DiskConfig(), str(tmp_path / "x"))
    with pytest.raises(ConfigError):
        generate([PartitionRequest(8)], DiskConfig(heads=16, sectors=63), "")
    with pytest.raises(ConfigError):
        DiskConfig.from_disk_size(67)
    with pytest.raises(ConfigError):
        DiskConfig(table=TableKind.GPT, first_entry=1).validate()
