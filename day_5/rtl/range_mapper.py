"""
Range Mapper Hardware Implementation using Amaranth HDL

This module implements one almanac mapping stage in hardware RTL.
An interval is latched, the stage's rules are streamed past it one per
cycle, and every rule that overlaps the interval emits its pieces.

Architecture:
- RangeTranslator: combinational split of one interval against one rule
  (before / mapped / after pieces, each with a valid flag)
- MappingStage: FSM that drives a RangeTranslator with a stream of rules
  and falls back to the unchanged interval when no rule hits

Intervals are half-open [start, end). Translation is modulo 2**width,
so dest_start + (v - source_start) wraps exactly like the software
reference does for in-range results.
"""

from amaranth import *


class RangeTranslator(Elaboratable):
    """
    Combinational split of an interval against one mapping rule.

    Ports:
        Input:
            - start_in / end_in: Interval to split
            - source_start / source_end / dest_start: The rule

        Output:
            - hit: Interval and rule source overlap (non-empty overlap)
            - before_start / before_end / before_valid: Unmapped part below the rule
            - mapped_start / mapped_end / mapped_valid: Translated overlap
            - after_start / after_end / after_valid: Unmapped part above the rule

        All valid flags are low when the rule does not hit.
    """

    def __init__(self, width=64):
        self.width = width

        # Interval input
        self.start_in = Signal(width)
        self.end_in = Signal(width)

        # Rule input
        self.source_start = Signal(width)
        self.source_end = Signal(width)
        self.dest_start = Signal(width)

        # Outputs
        self.hit = Signal()

        self.before_start = Signal(width)
        self.before_end = Signal(width)
        self.before_valid = Signal()

        self.mapped_start = Signal(width)
        self.mapped_end = Signal(width)
        self.mapped_valid = Signal()

        self.after_start = Signal(width)
        self.after_end = Signal(width)
        self.after_valid = Signal()

    def elaborate(self, platform):
        m = Module()

        overlap_start = Signal(self.width)
        overlap_end = Signal(self.width)
        offset = Signal(self.width)

        m.d.comb += [
            overlap_start.eq(Mux(self.start_in > self.source_start, self.start_in, self.source_start)),
            overlap_end.eq(Mux(self.end_in < self.source_end, self.end_in, self.source_end)),
            offset.eq(self.dest_start - self.source_start),
            self.hit.eq(overlap_start < overlap_end),
        ]

        # On a hit the interval crosses source_start / source_end, so the
        # leftover bounds are the rule bounds themselves
        m.d.comb += [
            self.before_start.eq(self.start_in),
            self.before_end.eq(self.source_start),
            self.before_valid.eq(self.hit & (self.start_in < self.source_start)),

            self.mapped_start.eq(overlap_start + offset),
            self.mapped_end.eq(overlap_end + offset),
            self.mapped_valid.eq(self.hit),

            self.after_start.eq(self.source_end),
            self.after_end.eq(self.end_in),
            self.after_valid.eq(self.hit & (self.end_in > self.source_end)),
        ]

        return m


class MappingStage(Elaboratable):
    """
    Hardware module that maps one interval through a streamed rule table.

    Ports:
        Input (interval):
            - interval_start / interval_end: Interval to map
            - start: Latch the interval and begin a new table pass

        Input (rule stream):
            - rule_source_start / rule_source_end / rule_dest_start: Current rule
            - rule_valid: Rule data valid signal
            - rule_last: Last rule of the table (may be raised without
              rule_valid for an empty table)

        Output (registered, one cycle after the rule):
            - before_* / mapped_* / after_*: Pieces produced by that rule
            - mapped_* also carries the passthrough interval when no rule hit
            - done: Table pass complete, all pieces emitted

        Control:
            - ready: Ready to accept a new interval
    """

    def __init__(self, width=64):
        self.width = width

        # Interval input
        self.interval_start = Signal(width)
        self.interval_end = Signal(width)
        self.start = Signal()

        # Rule stream input
        self.rule_source_start = Signal(width)
        self.rule_source_end = Signal(width)
        self.rule_dest_start = Signal(width)
        self.rule_valid = Signal()
        self.rule_last = Signal()

        # Piece outputs
        self.before_start = Signal(width)
        self.before_end = Signal(width)
        self.before_valid = Signal()

        self.mapped_start = Signal(width)
        self.mapped_end = Signal(width)
        self.mapped_valid = Signal()

        self.after_start = Signal(width)
        self.after_end = Signal(width)
        self.after_valid = Signal()

        # Control
        self.done = Signal()
        self.ready = Signal()

    def elaborate(self, platform):
        m = Module()

        m.submodules.translator = translator = RangeTranslator(width=self.width)

        # Latched interval and hit tracking for the current pass
        cur_start = Signal(self.width)
        cur_end = Signal(self.width)
        any_hit = Signal()

        m.d.comb += [
            translator.start_in.eq(cur_start),
            translator.end_in.eq(cur_end),
            translator.source_start.eq(self.rule_source_start),
            translator.source_end.eq(self.rule_source_end),
            translator.dest_start.eq(self.rule_dest_start),
        ]

        def clear_outputs():
            return [
                self.before_valid.eq(0),
                self.mapped_valid.eq(0),
                self.after_valid.eq(0),
            ]

        def begin_pass():
            return [
                cur_start.eq(self.interval_start),
                cur_end.eq(self.interval_end),
                any_hit.eq(0),
                self.done.eq(0),
            ]

        with m.FSM():

            with m.State("IDLE"):
                m.d.comb += self.ready.eq(1)
                m.d.sync += clear_outputs()

                with m.If(self.start):
                    m.d.sync += begin_pass()
                    m.next = "SCAN"

            with m.State("SCAN"):
                with m.If(self.rule_valid):
                    m.d.sync += [
                        self.before_start.eq(translator.before_start),
                        self.before_end.eq(translator.before_end),
                        self.before_valid.eq(translator.before_valid),

                        self.mapped_start.eq(translator.mapped_start),
                        self.mapped_end.eq(translator.mapped_end),
                        self.mapped_valid.eq(translator.mapped_valid),

                        self.after_start.eq(translator.after_start),
                        self.after_end.eq(translator.after_end),
                        self.after_valid.eq(translator.after_valid),
                    ]
                    with m.If(translator.hit):
                        m.d.sync += any_hit.eq(1)
                with m.Else():
                    m.d.sync += clear_outputs()

                with m.If(self.rule_last):
                    m.next = "FINISH"

            with m.State("FINISH"):
                # Unmatched intervals map to themselves
                m.d.sync += [
                    self.before_valid.eq(0),
                    self.after_valid.eq(0),
                    self.mapped_start.eq(cur_start),
                    self.mapped_end.eq(cur_end),
                    self.mapped_valid.eq(~any_hit),
                    self.done.eq(1),
                ]
                m.next = "DONE"

            with m.State("DONE"):
                m.d.comb += self.ready.eq(1)
                m.d.sync += clear_outputs()

                with m.If(self.start):
                    m.d.sync += begin_pass()
                    m.next = "SCAN"

        return m
