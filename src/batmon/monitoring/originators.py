"""
batman-adv Originator Table Parsing

Converts the text printed by `batctl o` into OriginatorEntry records.

A table looks like this (the first two lines are a banner and a column
header, their exact content differs between batctl versions):

    [B.A.T.M.A.N. adv 2019.2, MainIF/MAC: wlan0/02:11:22:33:44:55 (bat0 ...)]
      Originator      last-seen (#/255)           Nexthop [outgoingIF]:   Potential nexthops ...
    02:aa:bb:cc:dd:01    0.340s   (255) 02:aa:bb:cc:dd:01 [     wlan0]: 02:aa:bb:cc:dd:01 (255)
    02:aa:bb:cc:dd:02    1.020s   (187) 02:aa:bb:cc:dd:01 [     wlan0]: 02:aa:bb:cc:dd:01 (187)

Only the originator, last-seen age, link quality and next hop are read.
Everything after the next hop (outgoing interface, potential next hops)
is ignored.

Functions:
- decode_address / encode_address: MAC byte fields <-> 48-bit int <-> label
- parse_line: one data line -> OriginatorEntry
- skip_header / parse_table: whole table, fail-fast on the first bad line
"""

import re
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from .errors import ParseError

logger = logging.getLogger(__name__)

ADDRESS_BYTES = 6
ADDRESS_MAX = (1 << (8 * ADDRESS_BYTES)) - 1
QUALITY_MAX = 255
HEADER_LINES = 2

_HEX = r'([0-9a-fA-F]{1,2})'
_MAC = r':'.join([_HEX] * ADDRESS_BYTES)

# Leading "*" marks the best route in newer batctl output.
ORIGINATOR_LINE = re.compile(
    r'^\s*(?:\*\s+)?'
    + _MAC
    + r'\s+(\d+(?:\.\d*)?|\.\d+)s'
    + r'\s*\(\s*(\d+)\s*\)'
    + r'\s*' + _MAC
    + r'(?![0-9a-fA-F:])'
)


@dataclass
class OriginatorEntry:
    """One row of the originator table"""
    originator: int           # 48-bit originator address
    age: float                # seconds since last OGM
    quality: int              # 0-255 transmit quality
    next_hop: int             # 48-bit next hop address

    @property
    def label(self) -> str:
        """Canonical metric label of the originator"""
        return encode_address(self.originator)

    def to_dict(self) -> dict:
        return {
            'originator': format_mac(self.originator),
            'label': self.label,
            'age': self.age,
            'quality': self.quality,
            'next_hop': format_mac(self.next_hop),
        }


def decode_address(fields: Sequence[int]) -> int:
    """Convert six MAC address byte fields into one 48-bit integer.

    The first field is the most significant byte.

    Args:
        fields: Six ints in 0..255

    Returns:
        Integer in 0..2**48-1

    Raises:
        ValueError: wrong number of fields or a field out of byte range
    """
    if len(fields) != ADDRESS_BYTES:
        raise ValueError(f"Expected {ADDRESS_BYTES} address fields, got {len(fields)}")

    value = 0
    for field in fields:
        if not 0 <= field <= 0xFF:
            raise ValueError(f"Address field out of range: {field}")
        value = (value << 8) | field
    return value


def encode_address(value: int) -> str:
    """Render a 48-bit address as lowercase hex, no separators, no padding.

    >>> encode_address(0xAABBCCDDEE01)
    'aabbccddee01'
    >>> encode_address(0xAB)
    'ab'
    """
    return format(value, 'x')


def format_mac(value: int) -> str:
    """Render a 48-bit address as aa:bb:cc:dd:ee:ff"""
    raw = format(value, '012x')
    return ':'.join(raw[i:i + 2] for i in range(0, 12, 2))


def parse_line(line: str, line_number: Optional[int] = None) -> OriginatorEntry:
    """Parse one originator table data line.

    Args:
        line: Raw text line (trailing newline allowed)
        line_number: Position in the stream, used for error reporting

    Returns:
        OriginatorEntry

    Raises:
        ParseError: the line does not carry all fourteen expected fields
    """
    text = line.rstrip('\r\n')
    match = ORIGINATOR_LINE.match(text)
    if not match:
        raise ParseError("Malformed originator line", line=text, line_number=line_number)

    groups = match.groups()
    originator = decode_address([int(g, 16) for g in groups[0:6]])
    age = float(groups[6])
    quality = int(groups[7])
    next_hop = decode_address([int(g, 16) for g in groups[8:14]])

    if quality > QUALITY_MAX:
        raise ParseError(f"Link quality out of range: {quality}", line=text, line_number=line_number)

    return OriginatorEntry(
        originator=originator,
        age=age,
        quality=quality,
        next_hop=next_hop,
    )


def skip_header(lines: Iterator[str]) -> int:
    """Discard the banner and column header lines.

    Returns:
        Number of lines actually skipped (less than two for a short stream)
    """
    skipped = 0
    for _ in range(HEADER_LINES):
        if next(lines, None) is None:
            break
        skipped += 1
    return skipped


def parse_table(lines: Iterable[str]) -> Iterator[OriginatorEntry]:
    """Parse a complete originator table.

    The first two lines are skipped whatever they contain. Parsing is
    fail-fast: the first malformed data line raises ParseError and no
    further lines are read. Blank lines are ignored.

    Yields:
        OriginatorEntry for each data line, in table order
    """
    it = iter(lines)
    line_number = skip_header(it)

    for line in it:
        line_number += 1
        if not line.strip():
            continue
        yield parse_line(line, line_number=line_number)
