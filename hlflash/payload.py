"""Construction of the RAM payload that erases and reprograms one flash sector."""

from __future__ import annotations

from hlflash.drive import append_checksum
from hlflash.hexarg import parse_hex

FLASH_BASE = 0x90000000

_SECTOR_FIELDS = (8, 30)
_SIZE_FIELD = 48

# Saves registers, calls the erase routine for the target sector, and on
# success calls the program routine with the sector data that follows the
# code in RAM (at 0x80000881). The zeroed words hold the sector address and
# sector size.
CONTROL_CODE = bytes.fromhex(
    "CFF8FAFCFFFDFCCC00000000013409FC"
    "FF36000000342E09A000C923FCCC0000"
    "0000013409FCCC81080080013809FCCC"
    "00000000012C09FCFF7E040000FAFD00"
    "02CEF8F0FC"
)

# Sector erase routine, adjusted so it neither clobbers the sector data placed
# after the code nor erases two sectors at once on 4K-sector parts.
ERASE_CODE = bytes.fromhex(
    "CF08CF20F8FEFCFCFF29040000F8FE04"
    "34A8D98501F21402A8D9F8FEFCFCFF76"
    "000000F8FE04FCA8203000802DFF00A1"
    "C8398005FC8100300080F8FEFCFCFF80"
    "020000F8FE04F8FEFCFCFFA2030000F8"
    "FE0481C81EFCA400300080FCC4010000"
    "00FC8100300080C9D32CFF00022E09CA"
    "078000022E0934A8D92DFE00F20402A8"
    "D9F8FEFCFCFFCC030000F8FE04CE20CE"
    "08F0FCFCDC00000090FAD055552CAA00"
    "F050FCDD00000090FAD1AA2A8055F051"
    "2C9000F050CBCBFCA800000090FC8220"
    "300080FCA800100090FC8224300080FC"
    "A800200090FC8228300080FCA8010000"
    "90FC82043000802CAA00F0508055F051"
    "2CF000F050CBCBF8FEFCFCFF16030000"
    "F8FE04851FFCA820300080A4C920FCA8"
    "24300080A4C917FCA828300080A4C90E"
    "2C0020FC812C300080CC9201FCDC0000"
    "0090FAD055052CAA00F050FCDD000000"
    "90FAD1AA028055F0512C9000F050CBCB"
    "FCA800000090FC8220300080FCA80010"
    "0090FC8224300080FCA800200090FC82"
    "28300080FCA801000090FC8204300080"
    "2CAA00F0508055F0512CF000F050CBCB"
    "F8FEFCFCFF7D020000F8FE042DC200FC"
    "A820300080A4C920FCA824300080A4C9"
    "17FCA828300080A4C90E2C0020FC812C"
    "300080CCF8002D9D00FCA820300080A4"
    "C920FCA824300080A4C917FCA8283000"
    "80A4C90E2C0010FC812C300080CCCE00"
    "8537FCA820300080A4C920FCA8243000"
    "80A4C917FCA828300080A4C90E2C0020"
    "FC812C300080CCA500FCDC00000090FA"
    "D055552CAA00F050FCDD00000090FAD1"
    "AA2A8055F0512C9000F050CBCBFCA800"
    "000090FC8220300080FCA800000090FC"
    "8224300080FCA800000090FC82283000"
    "80FCA801000090FC82043000802CAA00"
    "F0508055F0512CF000F050CBCBF8FEFC"
    "FCFF90010000F8FE042DBF00FCA82030"
    "0080A4C91FFCA824300080A4C916FCA8"
    "28300080A4C90D2C0010FC812C300080"
    "CA0B2CFF00FC8220300080F0FCFCA820"
    "300080851FA4C8192DC200A4C8552D9D"
    "00A4C905CC8F008537A4C847CC9D00FC"
    "DC00000090FAD055552CAA00F050FCDD"
    "00000090FAD1AA2A8055F0512C8000F0"
    "502CAA00F0508055F051FAA034098030"
    "F050F8FEFCFCFFFB000000F8FE04CCCB"
    "00FCDC00000090FAD055052CAA00F050"
    "FCDD00000090FAD1AA028055F0512C80"
    "00F0502CAA00F0508055F051FAA03409"
    "8030F050F8FEFCFCFFB9000000F8FE04"
    "CC8900FCDC00000090FAD05505FCDD00"
    "000090FAD1AA02CA16FCDC00000090FA"
    "D05555FCDD00000090FAD1AA2A2CAA00"
    "F0508055F0512C8000F0502CAA00F050"
    "8055F051FAA234098030F052F8FEFCFC"
    "FF61000000F8FE04CBCBCBCBCBCBCBCB"
    "CBCBCBCBCBCBCBCBCBCBCBCBCBCBCBCB"
    "CBCBCBCBCBCBCBCBCBCBCBCBCBCBCBCB"
    "CBCBCBCBCBCBCBCA02F0FCFCA52C3000"
    "80FAA03409F040FAC8FF00C91041FCC5"
    "01000000C9F18000DF00002CFF00F0FC"
    "FCA800000090CBCBFCA900000090CBCB"
    "A1C9EFFCA900000090CBCBA1C9E4F0FC"
    "3404D9F8E080C9FACBCB80010200DFCB"
    "CB80000201DFCBCB2C9A000228DFF0FC"
    "3404D9F8E080C9FACBCB80000200DFCB"
    "CB80000201DFCBCB2C9A000228DFF0FC"
)

# Byte-program routine, adjusted so it does not clobber the sector data
# placed after the code.
PROGRAM_CODE = bytes.fromhex(
    "CF08F8FEFCFCFF87030000F8FE0434A8"
    "D98501F21402A8D9F8FEFCFCFFA30000"
    "00F8FE04FCA8203000802DFF00A1C842"
    "382C09FC812C300080800AFC81003000"
    "80F8FEFCFCFF79020000F8FE04F8FEFC"
    "FCFF03030000F8FE0481C81EFCA40030"
    "0080FCC401000000FC8100300080C9D3"
    "2CFF00022E09CA2DFAA0340941FA8034"
    "09FAA0380941FA803809FCA42C300080"
    "FCC401000000FC812C300080C99D8000"
    "022E0934A8D92DFE00F20402A8D9F8FE"
    "FCFCFFFB020000F8FE04CE08F0FCFCDC"
    "00000090FAD055552CAA00F050FCDD00"
    "000090FAD1AA2A8055F0512C9000F050"
    "CBCBFCA800000090FC8220300080FCA8"
    "00100090FC8224300080FCA800200090"
    "FC8228300080FCA801000090FC820430"
    "00802CAA00F0508055F0512CF000F050"
    "CBCBF8FEFCFCFF47020000F8FE04851F"
    "FCA820300080A4C919FCA824300080A4"
    "C910FCA828300080A4C907C905CC6E01"
    "FCDC00000090FAD055052CAA00F050FC"
    "DD00000090FAD1AA028055F0512C9000"
    "F050CBCBFCA800000090FC8220300080"
    "FCA800100090FC8224300080FCA80020"
    "0090FC8228300080FCA801000090FC82"
    "043000802CAA00F0508055F0512CF000"
    "F050CBCBF8FEFCFCFFB5010000F8FE04"
    "2DC200FCA820300080A4C917FCA82430"
    "0080A4C90EFCA828300080A4C905CCDD"
    "002D9D00FCA820300080A4C917FCA824"
    "300080A4C90EFCA828300080A4C905CC"
    "BC008537FCA820300080A4C917FCA824"
    "300080A4C90EFCA828300080A4C905CC"
    "9C00FCDC00000090FAD055552CAA00F0"
    "50FCDD00000090FAD1AA2A8055F0512C"
    "9000F050CBCBFCA800000090FC822030"
    "0080FCA800000090FC8224300080FCA8"
    "00000090FC8228300080FCA801000090"
    "FC82043000802CAA00F0508055F0512C"
    "F000F050CBCBF8FEFCFCFFE3000000F8"
    "FE042DBF00FCA820300080A4C916FCA8"
    "24300080A4C90DFCA828300080A4C904"
    "C80B2CFF00FC8220300080F0FCFCA820"
    "300080851FA4C8152DC200A4C84B2D9D"
    "00A4C8458537A4C840CA02FCDC000000"
    "90FAD055552CAA00F050FCDD00000090"
    "FAD1AA2A8055F0512CA000F050FAA134"
    "09FAA03809F040F051F8FEFCFCFF6000"
    "0000F8FE04CA3CFCDC00000090FAD055"
    "052CAA00F050FCDD00000090FAD1AA02"
    "8055F0512CA000F050FAA13409FAA038"
    "09F040F051F8FEFCFCFF24000000F8FE"
    "04F0FCFAA13409FAA03809F040F045A4"
    "C9078000DF00002CFF00F0FCFCA80000"
    "0090CBCBFCA900000090CBCBA1C9EFFC"
    "A900000090CBCBA1C9E4F0FC3404D9F8"
    "E080C9FACBCB80010200DFCBCB800002"
    "01DFCBCB2C9A000228DFF0FC3404D9F8"
    "E080C9FACBCB80000200DFCBCB800002"
    "01DFCBCB2C9A000228DFF0FC"
)


def parse_sector_args(sector_text: str, size_text: str) -> tuple:
    """Parse the hex sector address and sector size; return ``(sector, sector_size)``.

    The address must lie in the flash window and be a multiple of the size.
    """
    try:
        sector_size = parse_hex(size_text, 4)
    except ValueError as exc:
        raise ValueError("invalid sector size") from exc
    if sector_size == 0:
        raise ValueError("invalid sector size")
    try:
        sector = parse_hex(sector_text, 4)
    except ValueError as exc:
        raise ValueError("invalid sector address") from exc
    if sector % sector_size or sector < FLASH_BASE:
        raise ValueError("invalid sector address")
    return sector, sector_size


def build_control_code(sector: int, sector_size: int) -> bytes:
    """Return the control routine with the sector address and size filled in."""
    code = bytearray(CONTROL_CODE)
    address = (sector & 0xFFFFFFFF).to_bytes(4, "little")
    for offset in _SECTOR_FIELDS:
        code[offset:offset + 4] = address
    code[_SIZE_FIELD:_SIZE_FIELD + 4] = (sector_size & 0xFFFFFFFF).to_bytes(4, "little")
    return bytes(code)


def build_flash_payload(image: bytes, sector: int, sector_size: int, checksum: bool = True) -> bytes:
    """Assemble control, erase and program code followed by the sector's data from ``image``.

    With ``checksum`` the buffer is padded to a 4-byte boundary and ends with
    the 16-bit checksum that the upload channel expects.
    """
    image = bytes(image)
    if sector < FLASH_BASE:
        raise ValueError("invalid sector address")
    start = sector - FLASH_BASE
    data = image[start:start + sector_size]
    if len(data) != sector_size:
        raise ValueError("firmware image too short for the requested sector")
    buffer = build_control_code(sector, sector_size) + ERASE_CODE + PROGRAM_CODE + data
    return append_checksum(buffer) if checksum else buffer