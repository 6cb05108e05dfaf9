"""
Unit tests for the almanac parser, the seven-stage pipeline and the CLI.

Uses the worked example from the puzzle statement (testcases/example_input.txt)
whose known answers are 35 for single seeds and 46 for seed ranges.
"""

import os
import sys

import pytest

from software_reference import range_mapper
from software_reference.range_mapper import (
    ArithmeticOverflow,
    Interval,
    MalformedMappingLine,
    MalformedSeedLine,
    MalformedStageCount,
    MappedRange,
    MappingTable,
    NoLocationFound,
    Pipeline,
    RangeMapperError,
    lowest_location,
    min_location,
    parse_almanac,
    parse_mapping_line,
    seed_intervals,
)


EXAMPLE_FILE = os.path.join(os.path.dirname(__file__), "..", "testcases", "example_input.txt")


@pytest.fixture
def example_text():
    with open(EXAMPLE_FILE) as f:
        return f.read()


def drop_last_stage(text):
    """Cut the almanac just before its last map header."""
    return text[:text.index("humidity-to-location map:")]


# =============================================================
# MappedRange / MappingTable
# =============================================================

def test_map_value():
    """Test scalar translation inside and outside the rule."""
    rule = MappedRange(source_start=98, source_end=100, dest_start=50)
    assert rule.map_value(97) is None
    assert rule.map_value(98) == 50
    assert rule.map_value(99) == 51
    assert rule.map_value(100) is None


def test_map_value_downward():
    """Test that rules mapping onto lower values subtract the offset."""
    rule = MappedRange(source_start=50, source_end=98, dest_start=52)
    assert rule.map_value(79) == 81

    rule = MappedRange(source_start=15, source_end=52, dest_start=0)
    assert rule.map_value(15) == 0


def test_range_mapping():
    """Test the single-rule split at every edge."""
    rule = MappedRange(source_start=4, source_end=8, dest_start=10)
    table = MappingTable([rule])

    assert rule.split(Interval(3, 4)) is None
    assert rule.split(Interval(4, 5)) == {Interval(10, 11)}
    assert rule.split(Interval(7, 8)) == {Interval(13, 14)}
    assert rule.split(Interval(8, 9)) is None

    assert table.apply(Interval(3, 4)) == {Interval(3, 4)}
    assert table.apply(Interval(4, 5)) == {Interval(10, 11)}
    assert table.apply(Interval(7, 8)) == {Interval(13, 14)}
    assert table.apply(Interval(8, 9)) == {Interval(8, 9)}


def test_table_mapping_with_overlapping_rules():
    """Test a table whose last two rules both claim [12, 15)."""
    table = MappingTable([
        MappedRange(source_start=4, source_end=8, dest_start=10),
        MappedRange(source_start=10, source_end=15, dest_start=20),
        MappedRange(source_start=12, source_end=15, dest_start=30),
    ])

    assert table.apply(Interval(3, 4)) == {Interval(3, 4)}
    assert table.apply(Interval(4, 5)) == {Interval(10, 11)}
    assert table.apply(Interval(10, 11)) == {Interval(20, 21)}
    assert table.apply(Interval(15, 16)) == {Interval(15, 16)}
    # Both claiming rules contribute
    assert table.apply(Interval(12, 13)) == {Interval(30, 31), Interval(22, 23)}


def test_empty_table_passes_everything_through():
    table = MappingTable([], "seed-to-soil")
    assert table.apply(Interval(0, 1000)) == {Interval(0, 1000)}


def test_translation_overflow():
    """Test that leaving the 64-bit domain is reported, not wrapped."""
    rule = MappedRange(source_start=0, source_end=10, dest_start=range_mapper.U64_LIMIT - 5)
    assert rule.map_value(4) == range_mapper.U64_LIMIT - 1

    with pytest.raises(ArithmeticOverflow):
        rule.map_value(7)
    with pytest.raises(ArithmeticOverflow):
        rule.map_interval(Interval(0, 10))


# =============================================================
# Parsing
# =============================================================

def test_parse_range():
    assert parse_mapping_line("50 98 2") == MappedRange(source_start=98, source_end=100, dest_start=50)


@pytest.mark.parametrize("line", [
    "50 98",
    "50 98 2 7",
    "50 -98 2",
    "fifty 98 2",
    "50 98 2.5",
])
def test_parse_range_rejects_malformed_lines(line):
    with pytest.raises(MalformedMappingLine):
        parse_mapping_line(line)


def test_parse_range_rejects_rule_past_64_bits():
    with pytest.raises(ArithmeticOverflow):
        parse_mapping_line(f"0 {range_mapper.U64_LIMIT - 1} 2")


def test_parse_almanac(example_text):
    seeds, pipeline = parse_almanac(example_text)

    assert seeds == [79, 14, 55, 13]
    assert [table.name for table in pipeline.tables] == [
        "seed-to-soil",
        "soil-to-fertilizer",
        "fertilizer-to-water",
        "water-to-light",
        "light-to-temperature",
        "temperature-to-humidity",
        "humidity-to-location",
    ]
    assert [len(table) for table in pipeline.tables] == [2, 3, 4, 2, 3, 2, 2]
    assert pipeline.tables[0].ranges[0] == MappedRange(98, 100, 50)


def test_parse_almanac_with_two_token_line(example_text):
    broken = example_text.replace("52 50 48", "52 50")
    with pytest.raises(MalformedMappingLine):
        parse_almanac(broken)


def test_parse_almanac_with_six_stages(example_text):
    with pytest.raises(MalformedStageCount):
        parse_almanac(drop_last_stage(example_text))


def test_parse_almanac_with_line_before_first_map(example_text):
    broken = example_text.replace("seed-to-soil map:\n", "")
    with pytest.raises(MalformedMappingLine):
        parse_almanac(broken)


@pytest.mark.parametrize("text", [
    "",
    "79 14 55 13\n",
    "seeds: 79 fourteen\n",
])
def test_parse_almanac_with_bad_header(text):
    with pytest.raises(MalformedSeedLine):
        parse_almanac(text)


def test_errors_share_a_base_class():
    for error in (MalformedMappingLine, MalformedStageCount, MalformedSeedLine,
                  NoLocationFound, ArithmeticOverflow):
        assert issubclass(error, RangeMapperError)


# =============================================================
# Seed intervals
# =============================================================

def test_seed_intervals_as_values():
    assert seed_intervals([79, 14, 55, 13], as_ranges=False) == [
        Interval(79, 80), Interval(14, 15), Interval(55, 56), Interval(13, 14),
    ]


def test_seed_intervals_as_ranges():
    assert seed_intervals([79, 14, 55, 13], as_ranges=True) == [
        Interval(79, 93), Interval(55, 68),
    ]


def test_seed_intervals_drop_zero_length_ranges():
    assert seed_intervals([5, 0, 10, 2], as_ranges=True) == [Interval(10, 12)]


def test_seed_intervals_with_odd_count():
    with pytest.raises(MalformedSeedLine):
        seed_intervals([79, 14, 55], as_ranges=True)


# =============================================================
# Pipeline / driver
# =============================================================

def test_pipeline_needs_seven_stages():
    with pytest.raises(MalformedStageCount):
        Pipeline([MappingTable([])] * 6)
    with pytest.raises(MalformedStageCount):
        Pipeline([MappingTable([])] * 8)


def test_first_seed(example_text):
    _, pipeline = parse_almanac(example_text)
    assert pipeline.locations_for(Interval(79, 80)) == {Interval(82, 83)}


def test_pipeline_trace(example_text):
    _, pipeline = parse_almanac(example_text)
    counts = pipeline.trace(Interval(79, 80))
    assert counts == [1] * 7


def test_part1(example_text):
    assert lowest_location(example_text, as_ranges=False) == 35


def test_part2(example_text):
    assert lowest_location(example_text, as_ranges=True) == 46


def test_min_location_without_seeds(example_text):
    _, pipeline = parse_almanac(example_text)
    with pytest.raises(NoLocationFound):
        min_location(pipeline, [])


def test_lowest_location_with_only_empty_ranges(example_text):
    text = example_text.replace("seeds: 79 14 55 13", "seeds: 79 0 55 0")
    with pytest.raises(NoLocationFound):
        lowest_location(text, as_ranges=True)


def test_identity_pipeline_returns_lowest_seed():
    pipeline = Pipeline([MappingTable([]) for _ in range(7)])
    assert min_location(pipeline, [Interval(40, 50), Interval(3_000_000_000, 9_000_000_000)]) == 40


def test_huge_ranges_are_not_enumerated():
    """Test a seed range of billions of values through a shifting pipeline."""
    shift = MappingTable([MappedRange(0, 1 << 40, 1 << 41)])
    pipeline = Pipeline([shift] + [MappingTable([]) for _ in range(6)])

    seeds = [Interval(1 << 39, (1 << 39) + 5_000_000_000)]
    assert min_location(pipeline, seeds) == (1 << 41) + (1 << 39)


# =============================================================
# Command-line interface
# =============================================================

def run_main(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["range_mapper.py", *args])
    return range_mapper.main()


def test_main_prints_both_parts(monkeypatch, capsys):
    assert run_main(monkeypatch, EXAMPLE_FILE) == 0
    out = capsys.readouterr().out
    assert out.split() == ["35", "46"]


def test_main_single_part(monkeypatch, capsys):
    assert run_main(monkeypatch, EXAMPLE_FILE, "--part", "2") == 0
    assert capsys.readouterr().out.strip() == "46"


def test_main_verbose_statistics(monkeypatch, capsys):
    assert run_main(monkeypatch, EXAMPLE_FILE, "--part", "1", "-v") == 0
    captured = capsys.readouterr()
    assert captured.out.strip() == "35"
    assert "seed-to-soil: 2 ranges" in captured.err
    assert "Part 1: 4 seed intervals" in captured.err


def test_main_reports_errors(monkeypatch, capsys, tmp_path, example_text):
    bad_input = tmp_path / "six_stages.txt"
    bad_input.write_text(drop_last_stage(example_text))

    assert run_main(monkeypatch, str(bad_input)) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Error: ")
