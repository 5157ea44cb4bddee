import pytest

from hlflash.payload import (
    CONTROL_CODE,
    ERASE_CODE,
    FLASH_BASE,
    PROGRAM_CODE,
    build_control_code,
    build_flash_payload,
    parse_sector_args,
)

IMAGE = bytes(range(256)) * 0x400
SECTOR = 0x9003F000
SIZE = 0x1000


def test_parse_sector_args_source_example():
    assert parse_sector_args("9003F000", "1000") == (SECTOR, SIZE)


@pytest.mark.parametrize("sector_text", ["9003F800", "8003F000", "9003G000"])
def test_parse_sector_args_rejects_bad_address(sector_text):
    with pytest.raises(ValueError, match="sector address"):
        parse_sector_args(sector_text, "1000")


@pytest.mark.parametrize("size_text", ["10x0", "0", ""])
def test_parse_sector_args_rejects_bad_size(size_text):
    with pytest.raises(ValueError, match="sector size"):
        parse_sector_args("9003F000", size_text)


def test_control_code_fields_are_filled():
    code = build_control_code(SECTOR, SIZE)
    assert len(code) == len(CONTROL_CODE)
    assert code[8:12] == SECTOR.to_bytes(4, "little")
    assert code[30:34] == SECTOR.to_bytes(4, "little")
    assert code[48:52] == SIZE.to_bytes(4, "little")
    untouched = [i for i in range(len(code)) if not (8 <= i < 12 or 30 <= i < 34 or 48 <= i < 52)]
    assert all(code[i] == CONTROL_CODE[i] for i in untouched)


def test_control_code_frame():
    code = build_control_code(SECTOR, SIZE)
    assert code[:2] == b"\xCF\xF8"
    assert code[-2:] == b"\xF0\xFC"


def test_sector_data_sits_at_source_address():
    payload = build_flash_payload(IMAGE, SECTOR, SIZE, checksum=False)
    source = int.from_bytes(CONTROL_CODE[39:43], "little") - 0x80000000
    assert source == len(CONTROL_CODE) + len(ERASE_CODE) + len(PROGRAM_CODE)
    assert payload[source:source + SIZE] == IMAGE[SECTOR - FLASH_BASE:]


def test_payload_without_checksum():
    payload = build_flash_payload(IMAGE, SECTOR, SIZE, checksum=False)
    expected = build_control_code(SECTOR, SIZE) + ERASE_CODE + PROGRAM_CODE + IMAGE[-SIZE:]
    assert payload == expected


@pytest.mark.parametrize("sector", [FLASH_BASE, SECTOR])
def test_payload_with_checksum(sector):
    plain = build_flash_payload(IMAGE, sector, SIZE, checksum=False)
    payload = build_flash_payload(IMAGE, sector, SIZE)
    assert len(payload) % 4 == 0
    assert payload.startswith(plain)
    assert len(payload) - len(plain) in (2, 3, 4, 5)
    total = sum(payload[:-2]) + int.from_bytes(payload[-2:], "little")
    assert total % 0x10000 == 0


def test_payload_short_image_raises():
    with pytest.raises(ValueError):
        build_flash_payload(IMAGE[:0x3F800], SECTOR, SIZE)


def test_payload_below_flash_base_raises():
    with pytest.raises(ValueError, match="sector address"):
        build_flash_payload(IMAGE, FLASH_BASE - SIZE, SIZE)