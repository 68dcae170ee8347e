"""Tests for apstrakit.policy.ports — port range parse / render."""

from __future__ import annotations

import pytest

from apstrakit.core.exceptions import ParseError, PortRangeParseError
from apstrakit.policy.ports import PortRange, parse_port_ranges, render_port_ranges


class TestParsePortRanges:
    def test_any_is_empty(self) -> None:
        assert parse_port_ranges("any") == []

    def test_single_port(self) -> None:
        assert parse_port_ranges("443") == [PortRange(443, 443)]

    def test_range(self) -> None:
        assert parse_port_ranges("8000-8080") == [PortRange(8000, 8080)]

    def test_mixed_list_keeps_order(self) -> None:
        assert parse_port_ranges("22,80-81,443") == [
            PortRange(22, 22),
            PortRange(80, 81),
            PortRange(443, 443),
        ]

    def test_descending_range_kept_as_written(self) -> None:
        assert parse_port_ranges("10-5") == [PortRange(10, 5)]

    def test_bounds(self) -> None:
        assert parse_port_ranges("0-65535") == [PortRange(0, 65535)]

    def test_above_max_rejected_with_token(self) -> None:
        with pytest.raises(PortRangeParseError) as exc_info:
            parse_port_ranges("80,65536")
        assert exc_info.value.raw == "65536"

    def test_three_part_token_rejected(self) -> None:
        with pytest.raises(PortRangeParseError) as exc_info:
            parse_port_ranges("1-2-3")
        assert exc_info.value.raw == "1-2-3"

    @pytest.mark.parametrize("raw", ["", "abc", "80,", "-5", "5-", " 80", "ANY", "1.5"])
    def test_malformed_rejected(self, raw: str) -> None:
        with pytest.raises(PortRangeParseError):
            parse_port_ranges(raw)

    @pytest.mark.parametrize("raw", ["\u0664\u0664\u0663", "\uff18\uff10", "80-\u0669\u0660"])
    def test_non_ascii_digits_rejected(self, raw: str) -> None:
        with pytest.raises(PortRangeParseError):
            parse_port_ranges(raw)

    def test_parse_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_port_ranges("x")
        assert issubclass(PortRangeParseError, ParseError)


class TestRenderPortRanges:
    def test_empty_is_any(self) -> None:
        assert render_port_ranges([]) == "any"

    def test_single(self) -> None:
        assert render_port_ranges([PortRange(53, 53)]) == "53"

    def test_descending_range_normalised(self) -> None:
        assert render_port_ranges([PortRange(10, 5)]) == "5-10"

    def test_list(self) -> None:
        assert render_port_ranges([PortRange(22, 22), PortRange(8000, 8080)]) == "22,8000-8080"

    @pytest.mark.parametrize("raw", ["any", "443", "1-1024", "22,80-81,443"])
    def test_canonical_strings_survive(self, raw: str) -> None:
        assert render_port_ranges(parse_port_ranges(raw)) == raw
