#!/usr/bin/env python3
"""
Software Reference Implementation of the Seed Range Remapper

Pushes seed intervals through the seven almanac tables
(seed -> soil -> fertilizer -> water -> light -> temperature -> humidity -> location)
and reports the lowest location reachable from any seed.

Algorithm:
1. Parse the "seeds:" header and the seven "<name> map:" blocks
2. Each table line "dest source length" becomes a MappedRange rule
3. For every seed interval, apply each table in order:
   a. Every rule that overlaps the interval splits it into up to three
      pieces (before, mapped, after)
   b. An interval no rule touches passes through unchanged
   c. Every piece is fed independently to the next table
4. The lowest location is the smallest start among all final intervals

Intervals are half-open [start, end) and never enumerated value by value,
so seed ranges spanning billions of values cost only a handful of splits.
"""

import sys
from typing import FrozenSet, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple


U64_LIMIT = 1 << 64

STAGE_COUNT = 7

SEEDS_PREFIX = "seeds:"
MAP_SUFFIX = " map:"


class RangeMapperError(Exception):
    """Base class for every almanac parsing or evaluation failure."""


class MalformedMappingLine(RangeMapperError):
    """A table line is not exactly three non-negative integers."""


class MalformedStageCount(RangeMapperError):
    """The almanac does not hold exactly seven tables."""


class MalformedSeedLine(RangeMapperError):
    """The "seeds:" header is missing or unreadable."""


class NoLocationFound(RangeMapperError):
    """There is nothing to take the minimum of."""


class ArithmeticOverflow(RangeMapperError):
    """A translated value falls outside the unsigned 64-bit domain."""


def _check_u64(value: int, what: str) -> int:
    if not 0 <= value < U64_LIMIT:
        raise ArithmeticOverflow(f"{what} {value} does not fit in 64 bits")
    return value


class Interval(NamedTuple):
    """Half-open range [start, end) of unsigned integers."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end


class MappedRange(NamedTuple):
    """One translation rule: [source_start, source_end) shifted onto dest_start."""

    source_start: int
    source_end: int
    dest_start: int

    def _translate(self, v: int) -> int:
        return _check_u64(self.dest_start + (v - self.source_start), "translated value")

    def map_value(self, v: int) -> Optional[int]:
        """Translate a single value, or None when the rule does not cover it."""
        if self.source_start <= v < self.source_end:
            return self._translate(v)
        return None

    def map_interval(self, interval: Interval) -> Optional[Interval]:
        """
        Translate the part of an interval covered by this rule.

        Args:
            interval: Source interval

        Returns:
            Interval: The translated overlap, or None when the overlap is empty.
                      An interval that only touches the rule's bounds does not
                      overlap it.
        """
        start = max(interval.start, self.source_start)
        end = min(interval.end, self.source_end)
        if start >= end:
            return None
        # end is exclusive, so translate end - 1 and step back out
        return Interval(self._translate(start), self._translate(end - 1) + 1)

    def split(self, interval: Interval) -> Optional[Set[Interval]]:
        """
        Split an interval against this rule.

        Args:
            interval: Source interval

        Returns:
            set: Up to three pieces: the unmapped part before the rule, the
                 mapped part, and the unmapped part after the rule. None when
                 the rule maps nothing of the interval, in which case its
                 leftovers are not reported either.
        """
        mapped = self.map_interval(interval)
        if mapped is None:
            return None

        pieces = {mapped}
        if interval.start < self.source_start:
            pieces.add(Interval(interval.start, min(interval.end, self.source_start)))
        if interval.end > self.source_end:
            pieces.add(Interval(max(self.source_end, interval.start), interval.end))
        return pieces


class MappingTable:
    """One almanac stage: an unordered set of MappedRange rules."""

    def __init__(self, ranges: Iterable[MappedRange], name: str = ""):
        self.ranges: Tuple[MappedRange, ...] = tuple(ranges)
        self.name = name

    def __len__(self) -> int:
        return len(self.ranges)

    def __repr__(self) -> str:
        return f"MappingTable({self.name!r}, {len(self.ranges)} ranges)"

    def apply(self, interval: Interval) -> FrozenSet[Interval]:
        """
        Map an interval through every rule of the table.

        Every rule that overlaps the interval contributes its pieces; the
        union is returned with duplicates removed. When no rule overlaps,
        the interval maps to itself.

        Two rules that claim the same source values both contribute, so a
        value can come out twice under different translations.
        """
        result: Set[Interval] = set()
        for mapped_range in self.ranges:
            pieces = mapped_range.split(interval)
            if pieces:
                result.update(pieces)

        if not result:
            return frozenset([interval])
        return frozenset(result)


class Pipeline:
    """The seven almanac tables applied in order."""

    def __init__(self, tables: Sequence[MappingTable]):
        if len(tables) != STAGE_COUNT:
            raise MalformedStageCount(
                f"There should have been {STAGE_COUNT} sets of ranges, but got {len(tables)}"
            )
        self.tables: Tuple[MappingTable, ...] = tuple(tables)

    def _stages(self, interval: Interval):
        current = frozenset([interval])
        for table in self.tables:
            stage_output: Set[Interval] = set()
            for piece in current:
                stage_output.update(table.apply(piece))
            current = frozenset(stage_output)
            yield current

    def locations_for(self, interval: Interval) -> FrozenSet[Interval]:
        """Return every interval reachable from `interval` after all stages."""
        *_, locations = self._stages(interval)
        return locations

    def trace(self, interval: Interval) -> List[int]:
        """Number of intervals alive after each stage, for statistics."""
        return [len(stage) for stage in self._stages(interval)]


def parse_mapping_line(line: str) -> MappedRange:
    """
    Parse one "dest_start source_start length" table line.

    Raises:
        MalformedMappingLine: The line is not three non-negative integers
        ArithmeticOverflow: The rule reaches past the 64-bit domain
    """
    tokens = line.split()
    if len(tokens) != 3 or not all(token.isdecimal() for token in tokens):
        raise MalformedMappingLine(f"Input line '{line}' does not contain three u64s")

    dest_start, source_start, length = (int(token) for token in tokens)
    for value in (dest_start, source_start, length):
        _check_u64(value, "table value")
    _check_u64(source_start + length, "source end")
    _check_u64(dest_start + length, "destination end")

    return MappedRange(source_start, source_start + length, dest_start)


def parse_seeds(line: str) -> List[int]:
    """Parse the "seeds: a b c ..." header into a list of integers."""
    if not line.startswith(SEEDS_PREFIX):
        raise MalformedSeedLine(f"Expected a '{SEEDS_PREFIX}' header, got '{line}'")

    tokens = line[len(SEEDS_PREFIX):].split()
    if not all(token.isdecimal() for token in tokens):
        raise MalformedSeedLine(f"Seed line '{line}' contains a non-integer value")
    return [_check_u64(int(token), "seed") for token in tokens]


def parse_almanac(text: str) -> Tuple[List[int], Pipeline]:
    """
    Parse a complete almanac.

    Args:
        text: Puzzle input, header line first

    Returns:
        tuple: (seeds, pipeline) where seeds is the flat list of header
               integers and pipeline holds the seven tables in file order
    """
    lines = text.strip().splitlines()
    if not lines:
        raise MalformedSeedLine("Empty almanac")

    seeds = parse_seeds(lines[0].strip())

    tables = []
    name = None
    ranges: List[MappedRange] = []

    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue

        if line.endswith(MAP_SUFFIX):
            if name is not None:
                tables.append(MappingTable(ranges, name))
            name = line[: -len(MAP_SUFFIX)]
            ranges = []
            continue

        if name is None:
            raise MalformedMappingLine(f"Input line '{line}' appears before any map header")
        ranges.append(parse_mapping_line(line))

    if name is not None:
        tables.append(MappingTable(ranges, name))

    return seeds, Pipeline(tables)


def seed_intervals(seeds: Sequence[int], as_ranges: bool) -> List[Interval]:
    """
    Turn the header values into seed intervals.

    Args:
        seeds: Flat list of header integers
        as_ranges: Read the values as (start, length) pairs rather than
                   individual seeds

    Returns:
        list: Seed intervals. Zero-length pairs hold no seed and are dropped.
    """
    if not as_ranges:
        return [Interval(seed, seed + 1) for seed in seeds]

    if len(seeds) % 2:
        raise MalformedSeedLine(f"Seed ranges need (start, length) pairs, got {len(seeds)} values")

    intervals = []
    for start, length in zip(seeds[0::2], seeds[1::2]):
        interval = Interval(start, _check_u64(start + length, "seed range end"))
        if not interval.is_empty:
            intervals.append(interval)
    return intervals


def min_location(pipeline: Pipeline, intervals: Iterable[Interval]) -> int:
    """
    Lowest location reachable from any seed interval.

    The smallest value of a half-open interval is its start, so the minimum
    over all final interval starts is the answer.

    Raises:
        NoLocationFound: No seed interval, or the pipeline produced nothing
    """
    intervals = list(intervals)
    if not intervals:
        raise NoLocationFound("No seed interval to map")

    locations: Set[Interval] = set()
    for interval in intervals:
        locations.update(pipeline.locations_for(interval))

    if not locations:
        raise NoLocationFound("No location mapped")
    return min(location.start for location in locations)


def lowest_location(text: str, as_ranges: bool) -> int:
    """Parse an almanac and return its lowest location (part 1 or part 2)."""
    seeds, pipeline = parse_almanac(text)
    return min_location(pipeline, seed_intervals(seeds, as_ranges))


def main():
    """Command-line interface for the seed range remapper."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Find the lowest location reachable from the almanac seeds'
    )
    parser.add_argument('input_file', nargs='?', type=argparse.FileType('r'),
                       default=sys.stdin,
                       help='Almanac input file (default: stdin)')
    parser.add_argument('--part', choices=['1', '2', 'both'], default='both',
                       help='1: seeds are single values, 2: seeds are ranges')
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Print per-stage statistics')
    args = parser.parse_args()

    input_text = args.input_file.read()

    try:
        seeds, pipeline = parse_almanac(input_text)

        if args.verbose:
            print(f"Parsed {len(seeds)} seed values", file=sys.stderr)
            for table in pipeline.tables:
                print(f"  {table.name}: {len(table)} ranges", file=sys.stderr)

        parts = ['1', '2'] if args.part == 'both' else [args.part]
        for part in parts:
            intervals = seed_intervals(seeds, as_ranges=(part == '2'))

            if args.verbose:
                print(f"\nPart {part}: {len(intervals)} seed intervals", file=sys.stderr)
                for interval in intervals:
                    counts = pipeline.trace(interval)
                    print(f"  [{interval.start}, {interval.end}) -> "
                          f"{' -> '.join(str(c) for c in counts)} intervals", file=sys.stderr)

            print(min_location(pipeline, intervals))

    except RangeMapperError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
