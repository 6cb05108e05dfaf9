"""
Property-based tests for the range mapper using Hypothesis.

This module checks the interval splitting and the seven-stage pipeline
against a value-by-value evaluation over small domains, by testing
invariant properties that must hold for all valid inputs.
"""

import pytest
from hypothesis import given, strategies as st, assume, settings
from hypothesis.strategies import lists, integers

from software_reference.range_mapper import (
    Interval,
    MappedRange,
    MappingTable,
    Pipeline,
    STAGE_COUNT,
    min_location,
)


DOMAIN = 200


# Strategy for generating valid intervals (start <= end)
@st.composite
def valid_interval(draw, min_size=0):
    """Generate a half-open interval inside the test domain."""
    start = draw(integers(min_value=0, max_value=DOMAIN - min_size))
    end = draw(integers(min_value=start + min_size, max_value=DOMAIN))
    return Interval(start, end)


@st.composite
def mapped_range(draw):
    """Generate a rule whose source and destination stay inside the domain."""
    source = draw(valid_interval())
    dest_start = draw(integers(min_value=0, max_value=DOMAIN - source.length))
    return MappedRange(source.start, source.end, dest_start)


@st.composite
def disjoint_table(draw, max_rules=5):
    """Generate a table whose rules never claim the same source value."""
    cuts = draw(lists(integers(min_value=0, max_value=DOMAIN), min_size=0,
                      max_size=2 * max_rules, unique=True))
    cuts.sort()
    ranges = []
    for start, end in zip(cuts[0::2], cuts[1::2]):
        dest_start = draw(integers(min_value=0, max_value=DOMAIN - (end - start)))
        ranges.append(MappedRange(start, end, dest_start))
    return MappingTable(ranges)


def interval_values(intervals):
    """Convert a collection of intervals to the set of integers covered."""
    result = set()
    for start, end in intervals:
        result.update(range(start, end))
    return result


def total_length(intervals):
    return sum(interval.length for interval in intervals)


def hits(table, interval):
    """Number of rules in the table that overlap the interval."""
    return sum(1 for r in table.ranges if r.map_interval(interval) is not None)


def mapped_onto_leftover(rule, interval):
    """True when the translated piece lands exactly on one of the rule's leftovers."""
    mapped = rule.map_interval(interval)
    leftovers = (Interval(interval.start, rule.source_start), Interval(rule.source_end, interval.end))
    return mapped is not None and mapped in leftovers


# Property 1: Uncovered values map to themselves
@given(lists(mapped_range(), max_size=5), integers(min_value=0, max_value=DOMAIN - 1))
def test_uncovered_value_passes_through(ranges, v):
    """
    Property: A value no rule covers comes out of the table unchanged.
    """
    assume(all(r.map_value(v) is None for r in ranges))

    table = MappingTable(ranges)
    assert table.apply(Interval(v, v + 1)) == {Interval(v, v + 1)}


# Property 2: Scalar and interval translation agree
@given(mapped_range(), valid_interval(min_size=1))
def test_interval_matches_scalar(rule, interval):
    """
    Property: The mapped piece holds exactly the translated covered values.
    """
    expected = {rule.map_value(v) for v in range(interval.start, interval.end)}
    expected.discard(None)

    mapped = rule.map_interval(interval)
    actual = interval_values([mapped]) if mapped is not None else set()

    assert actual == expected, \
        f"Mapped piece {mapped} differs from scalar translation"


# Property 3: A single rule partitions the interval
@given(mapped_range(), valid_interval(min_size=1))
def test_single_rule_partitions(rule, interval):
    """
    Property: Splitting against one rule neither drops nor duplicates values.
    """
    # Identical pieces are emitted once, see test_identical_leftovers_are_emitted_once
    assume(not mapped_onto_leftover(rule, interval))

    pieces = MappingTable([rule]).apply(interval)

    assert total_length(pieces) == interval.length, \
        f"Length changed: {interval} -> {sorted(pieces)}"
    assert all(not piece.is_empty for piece in pieces)


# Property 4: Coverage is preserved when at most one rule hits
@given(disjoint_table(), valid_interval(min_size=1))
def test_coverage_preserved_with_one_hit(table, interval):
    """
    Property: When at most one rule overlaps the interval, the output is a
    partition of the same number of values.
    """
    assume(hits(table, interval) <= 1)
    assume(not any(mapped_onto_leftover(r, interval) for r in table.ranges))

    pieces = table.apply(interval)
    assert total_length(pieces) == interval.length


# Property 5: Interval output covers every value's own mapping
@given(disjoint_table(), valid_interval(min_size=1))
@settings(max_examples=300, deadline=None)
def test_interval_output_covers_values(table, interval):
    """
    Property: Mapping value by value never reaches anything the interval
    mapping misses.
    """
    from_interval = interval_values(table.apply(interval))
    for v in range(interval.start, interval.end):
        single = interval_values(table.apply(Interval(v, v + 1)))
        assert single <= from_interval, \
            f"Value {v} maps to {single}, not covered by {sorted(table.apply(interval))}"


# Property 6: Output is duplicate free and deterministic
@given(lists(mapped_range(), max_size=5), valid_interval())
def test_apply_is_deterministic(ranges, interval):
    """
    Property: Rule order does not change the output set.
    """
    forward = MappingTable(ranges).apply(interval)
    backward = MappingTable(list(reversed(ranges))).apply(interval)
    assert forward == backward


# Property 7: Single-rule pipelines agree with brute force
@given(lists(mapped_range(), min_size=STAGE_COUNT, max_size=STAGE_COUNT),
       lists(valid_interval(min_size=1), min_size=1, max_size=3))
@settings(max_examples=200, deadline=None)
def test_min_location_matches_brute_force(rules, seeds):
    """
    Property: With one rule per stage the interval pipeline finds the same
    minimum as pushing every seed value through on its own.
    """
    pipeline = Pipeline([MappingTable([rule]) for rule in rules])

    brute = min(
        min_location(pipeline, [Interval(v, v + 1)])
        for seed in seeds
        for v in range(seed.start, seed.end)
    )

    assert min_location(pipeline, seeds) == brute


# Property 8: Interval pipelines never miss a lower location
@given(lists(disjoint_table(), min_size=STAGE_COUNT, max_size=STAGE_COUNT),
       valid_interval(min_size=1))
@settings(max_examples=100, deadline=None)
def test_min_location_never_above_brute_force(tables, seed):
    """
    Property: The interval minimum is at most the value-by-value minimum.
    """
    pipeline = Pipeline(tables)

    brute = min(
        min_location(pipeline, [Interval(v, v + 1)])
        for v in range(seed.start, seed.end)
    )

    assert min_location(pipeline, [seed]) <= brute


# Concrete test cases for edge cases
def test_touching_rule_does_not_map():
    """Test that an interval ending where a rule starts is left alone."""
    table = MappingTable([MappedRange(10, 20, 100)])
    assert table.apply(Interval(5, 10)) == {Interval(5, 10)}
    assert table.apply(Interval(20, 25)) == {Interval(20, 25)}


def test_interval_wider_than_rule():
    """Test that an interval spanning a rule splits into three pieces."""
    table = MappingTable([MappedRange(10, 20, 100)])
    assert table.apply(Interval(5, 25)) == {
        Interval(5, 10),
        Interval(100, 110),
        Interval(20, 25),
    }


def test_identical_leftovers_are_emitted_once():
    """Test that the same leftover produced by two rules appears once."""
    # Both rules leave [0, 10) unmapped below them
    table = MappingTable([
        MappedRange(10, 15, 100),
        MappedRange(10, 15, 200),
    ])
    pieces = table.apply(Interval(0, 15))

    assert pieces == {Interval(0, 10), Interval(100, 105), Interval(200, 205)}
    assert total_length(pieces) == 20  # 15 values in, shared leftover counted once


def test_leftovers_of_neighbouring_rules_overlap():
    """Test that each hitting rule reports its own leftovers in full."""
    table = MappingTable([
        MappedRange(0, 5, 100),
        MappedRange(10, 15, 200),
    ])
    pieces = table.apply(Interval(3, 12))

    assert pieces == {
        Interval(103, 105),  # [3, 5) through the first rule
        Interval(5, 12),     # above the first rule
        Interval(3, 10),     # below the second rule
        Interval(200, 202),  # [10, 12) through the second rule
    }


if __name__ == "__main__":
    # Run pytest
    pytest.main([__file__, "-v", "--tb=short"])
