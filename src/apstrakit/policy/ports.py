"""
Port range codec.

Wire grammar::

    "any" | N | N-M | N,N-M,...

``"any"`` is the empty list. Parsing does not reorder a descending token such
as ``10-5``; rendering always writes the smaller port first.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from apstrakit.core.constants import PORT_ANY, PORT_MAX, PORT_RANGE_SEP, PORT_RANGES_SEP
from apstrakit.core.exceptions import PortRangeParseError

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class PortRange:
    """Inclusive range of 16-bit ports."""

    first: int
    last: int

    def render(self) -> str:
        if self.first == self.last:
            return str(self.first)
        low, high = sorted((self.first, self.last))
        return f"{low}{PORT_RANGE_SEP}{high}"


def _parse_port(text: str, token: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise PortRangeParseError(f"error parsing port range {token!r}", raw=token)
    value = int(text)
    if value > PORT_MAX:
        raise PortRangeParseError(
            f"port spec {token!r} falls outside of range 0-{PORT_MAX}", raw=token
        )
    return value


def parse_port_ranges(raw: str) -> list[PortRange]:
    """
    Parse the wire form of a port set.

    Raises:
        PortRangeParseError: on any malformed token or port above 65535.
    """
    if raw == PORT_ANY:
        return []

    result: list[PortRange] = []
    for token in raw.split(PORT_RANGES_SEP):
        ports = token.split(PORT_RANGE_SEP)
        if len(ports) == 1:
            first = last = _parse_port(ports[0], token)
        elif len(ports) == 2:
            first = _parse_port(ports[0], token)
            last = _parse_port(ports[1], token)
        else:
            raise PortRangeParseError(f"cannot parse port range {token!r}", raw=token)
        result.append(PortRange(first, last))
    return result


def render_port_ranges(ranges: Iterable[PortRange]) -> str:
    """Render a port set; an empty set is ``"any"``."""
    rendered = [r.render() for r in ranges]
    if not rendered:
        return PORT_ANY
    return PORT_RANGES_SEP.join(rendered)
