# python
"""
Context module behavioral tests (the parsing engine).

Scope
- Validate token classification: long/short options, inline values, short clusters,
  negative numbers, the delimiter and verbs.
- Validate every action, arity bounds and vararg stopping rules.
- Validate faults (kind and payload) and the deferred requirement checks.
- Validate early exits through triggers, nested verbs included, and post-parse hooks.

Conventions
- Test method names follow CamelCase per project convention.
- Parses run against config.namespace() targets unless a test needs another target.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argstack import (
    Argument,
    Arity,
    ParserConfig,
    ParserExit,
    ParsingContext,
    Positional,
    Store,
    Trigger,
    Verb,
)
from argstack.faults import (
    ArityViolationError,
    BadPrefixUsageError,
    ConversionError,
    ExtraPositionalArgumentsError,
    FlagAssignmentError,
    GroupedArgumentRequiresValueError,
    MissingRequiredArgumentError,
    MissingRequiredGroupError,
    MissingValueError,
    MutuallyExclusiveViolationError,
    UnknownArgumentError,
)


def parse(config, *tokens):
    target = config.namespace()
    signal = ParsingContext(target, config).parse(list(tokens))
    return target, signal


class TestOptions(TestCase):
    """Named arguments and their spellings."""

    def setUp(self):
        self.config = ParserConfig([
            Argument("-n", "--name"),
            Argument("-a", "--all", action="store-true"),
            Argument("-b", "--brief", action="store-true"),
            Argument("-v", "--verbose", action="count"),
            Argument("-e", "--expr"),
        ])

    def testLongOptionSpacedValue(self):
        target, signal = parse(self.config, "--name", "alice")
        self.assertIsNone(signal)
        self.assertEqual(target.name, "alice")

    def testLongOptionInlineValue(self):
        target, _ = parse(self.config, "--name=alice", "--expr=a=b")
        self.assertEqual(target.name, "alice")
        self.assertEqual(target.expr, "a=b")

    def testLongOptionEmptyInlineValue(self):
        target, _ = parse(self.config, "--name=")
        self.assertEqual(target.name, "")

    def testShortOptionSpacedAndAttachedValue(self):
        target, _ = parse(self.config, "-n", "alice")
        self.assertEqual(target.name, "alice")
        target, _ = parse(self.config, "-nbob")
        self.assertEqual(target.name, "bob")

    def testClusterLeadingValueArgumentTakesRestAsValue(self):
        target, _ = parse(self.config, "-nab")
        self.assertEqual(target.name, "ab")
        self.assertFalse(target.all)

    def testClusterEqualsSeparateFlags(self):
        clustered, _ = parse(self.config, "-abvv")
        separate, _ = parse(self.config, "-a", "-b", "-v", "-v")
        self.assertEqual(vars(clustered), vars(separate))
        self.assertTrue(clustered.all)
        self.assertEqual(clustered.verbose, 2)

    def testClusterWithValueArgumentFails(self):
        with self.assertRaises(GroupedArgumentRequiresValueError) as context:
            parse(self.config, "-an", "alice")
        self.assertEqual(context.exception.options["name"], "-n")
        self.assertEqual(context.exception.token, "-an")

    def testUnknownLongSuggestsCloseMatches(self):
        with self.assertRaises(UnknownArgumentError) as context:
            parse(self.config, "--verbos")
        self.assertIn("--verbose", context.exception.options["suggestions"])
        self.assertEqual(context.exception.options["name"], "--verbos")

    def testUnknownShortInsideCluster(self):
        with self.assertRaises(UnknownArgumentError) as context:
            parse(self.config, "-az")
        self.assertEqual(context.exception.options["name"], "-z")

    def testBarePrefix(self):
        with self.assertRaises(BadPrefixUsageError):
            parse(self.config, "-")

    def testFlagCannotTakeInlineValue(self):
        with self.assertRaises(FlagAssignmentError):
            parse(self.config, "--all=yes")

    def testMissingValueAtEnd(self):
        with self.assertRaises(MissingValueError) as context:
            parse(self.config, "--name")
        self.assertEqual(context.exception.options["name"], "--name")

    def testBlankTokensSkipped(self):
        target, _ = parse(self.config, "", "   ", " --all ")
        self.assertTrue(target.all)

    def testLastValueWins(self):
        target, _ = parse(self.config, "--name", "a", "-n", "b")
        self.assertEqual(target.name, "b")


class TestActions(TestCase):
    """Every action, with containers and conversion."""

    def testStoreConvertsType(self):
        config = ParserConfig([Argument("--count", type=int)])
        target, _ = parse(config, "--count", "0x10")
        self.assertEqual(target.count, 16)

    def testConversionErrorChainsCause(self):
        config = ParserConfig([Argument("--count", type=int)])
        with self.assertRaises(ConversionError) as context:
            parse(config, "--count", "many")
        self.assertIsInstance(context.exception.__cause__, ValueError)
        self.assertEqual(context.exception.token, "many")

    def testCustomConverterFailureIsConversionError(self):
        def positive(text):
            if (value := int(text)) <= 0:
                raise ValueError("must be positive")
            return value

        config = ParserConfig([Argument("--jobs", converter=positive)])
        self.assertEqual(parse(config, "--jobs", "4")[0].jobs, 4)
        with self.assertRaises(ConversionError):
            parse(config, "--jobs", "0")

    def testStoreConstAndBooleans(self):
        config = ParserConfig([
            Argument("--fast", dest="mode", action="store-const", const="fast", default="normal"),
            Argument("--on", action="store-true"),
            Argument("--off", action="store-false"),
        ])
        target, _ = parse(config, "--fast", "--on", "--off")
        self.assertEqual(target.mode, "fast")
        self.assertIs(target.on, True)
        self.assertIs(target.off, False)
        target, _ = parse(config)
        self.assertEqual(target.mode, "normal")

    def testAppendAccumulates(self):
        config = ParserConfig([Argument("-t", "--tag", action="append")])
        target, _ = parse(config, "--tag", "a", "-tb", "--tag=c")
        self.assertEqual(target.tag, ["a", "b", "c"])

    def testAppendWithArityExtendsFlat(self):
        config = ParserConfig([Argument("--pair", action="append", nargs=2)])
        target, _ = parse(config, "--pair", "a", "b", "--pair", "c", "d")
        self.assertEqual(target.pair, ["a", "b", "c", "d"])

    def testAppendConst(self):
        config = ParserConfig([
            Argument("--add-a", dest="items", action="append-const", const="a"),
            Argument("--add-b", dest="items", action="append-const", const="b"),
        ])
        target, _ = parse(config, "--add-b", "--add-a", "--add-b")
        self.assertEqual(target.items, ["b", "a", "b"])

    def testCountStartsFromNone(self):
        config = ParserConfig([Argument("-v", action="count", default=None)])
        target, _ = parse(config, "-vvv")
        self.assertEqual(target.v, 3)

    def testContainerBuildsCollection(self):
        config = ParserConfig([
            Argument("--items", nargs="+", container=tuple),
            Argument("--unique", nargs="+", container=frozenset),
        ])
        target, _ = parse(config, "--items", "a", "b", "--unique", "x", "x", "y")
        self.assertEqual(target.items, ("a", "b"))
        self.assertEqual(target.unique, frozenset({"x", "y"}))

    def testExplicitStoreIntoMapping(self):
        config = ParserConfig([Argument("--name", store=Store.item("name"))])
        target = {}
        self.assertIsNone(ParsingContext(target, config).parse(["--name", "alice"]))
        self.assertEqual(target, {"name": "alice"})


class TestArity(TestCase):
    """Value runs and their bounds."""

    def setUp(self):
        self.config = ParserConfig([
            Argument("--items", nargs=Arity.at_least(2)),
            Argument("--nums", nargs="+", type=int),
            Argument("--maybe", nargs="?"),
            Argument("--three", nargs=3),
            Argument("--other", action="store-true"),
        ])

    def testRunStopsAtNextOption(self):
        with self.assertRaises(ArityViolationError) as context:
            parse(self.config, "--items", "a", "--other")
        self.assertEqual(context.exception.options["minimum"], 2)
        self.assertEqual(context.exception.options["provided"], 1)

    def testRunWithinBounds(self):
        target, _ = parse(self.config, "--items", "a", "b", "--other")
        self.assertEqual(target.items, ["a", "b"])
        self.assertTrue(target.other)

    def testPrefixedTokensStopRuns(self):
        config = ParserConfig([Argument("--nums", nargs="+", type=int), Positional("REST", nargs="*")])
        target, _ = parse(config, "--nums", "1", "-2", "3")
        self.assertEqual(target.nums, [1])
        self.assertEqual(target.rest, ["-2", "3"])

    def testAtMostTakesNothingBeforeOption(self):
        target, _ = parse(self.config, "--maybe", "--other")
        self.assertEqual(target.maybe, [])
        self.assertTrue(target.other)

    def testExactlyStopsAtCount(self):
        config = ParserConfig([Argument("--three", nargs=3), Positional("REST", nargs="*")])
        target, _ = parse(config, "--three", "a", "b", "c", "d")
        self.assertEqual(target.three, ["a", "b", "c"])
        self.assertEqual(target.rest, ["d"])

    def testExactlyShortRunFails(self):
        with self.assertRaises(ArityViolationError):
            parse(self.config, "--three", "a", "b")


class TestPositionals(TestCase):
    """Positional collection, delimiter and negative numbers."""

    def testNegativeNumberIsPositional(self):
        config = ParserConfig([Positional("N", type=int)])
        target, _ = parse(config, "-1")
        self.assertEqual(target.n, -1)

    def testDelimiterForcesPositional(self):
        config = ParserConfig([Positional("VALUE"), Argument("--flag", action="store-true")])
        target, _ = parse(config, "--", "--not-an-option")
        self.assertEqual(target.value, "--not-an-option")
        self.assertFalse(target.flag)

    def testOptionLookingTokensKeptInPositionalRuns(self):
        config = ParserConfig([Positional("FILES", nargs="*")])
        target, _ = parse(config, "a", "--", "-x", "--y", "--")
        self.assertEqual(target.files, ["a", "-x", "--y", "--"])

    def testDeclarationOrder(self):
        config = ParserConfig([Positional("SOURCE"), Positional("TARGET", nargs="?"), Argument("--force", action="store-true")])
        target, _ = parse(config, "src", "--force", "dst")
        self.assertEqual((target.source, target.target, target.force), ("src", ["dst"], True))
        target, _ = parse(config, "src")
        self.assertEqual(target.target, [])

    def testMissingPositional(self):
        config = ParserConfig([Positional("SOURCE")])
        with self.assertRaises(MissingValueError) as context:
            parse(config)
        self.assertEqual(context.exception.options["name"], "SOURCE")

    def testMissingPositionalRun(self):
        config = ParserConfig([Positional("FILES", nargs="+")])
        with self.assertRaises(ArityViolationError):
            parse(config)

    def testExtraPositionals(self):
        config = ParserConfig([Positional("SOURCE")])
        with self.assertRaises(ExtraPositionalArgumentsError) as context:
            parse(config, "a", "b", "c")
        self.assertEqual(context.exception.options["leftover"], ["b", "c"])

    def testCustomPrefix(self):
        config = ParserConfig([Argument("/v", "//verbose", action="store-true"), Positional("VALUE")], prefix="/")
        target, _ = parse(config, "/v", "-x")
        self.assertTrue(target.verbose)
        self.assertEqual(target.value, "-x")
        target, _ = parse(config, "//", "/v")
        self.assertFalse(target.verbose)
        self.assertEqual(target.value, "/v")

    def testCustomSeparator(self):
        config = ParserConfig([Argument("--name")], separator=":")
        target, _ = parse(config, "--name:alice")
        self.assertEqual(target.name, "alice")


class TestGroups(TestCase):
    """Mutual exclusion and requirements."""

    def setUp(self):
        self.config = ParserConfig([
            Argument("--json", action="store-true", exclusive="format"),
            Argument("--yaml", action="store-true", exclusive="format"),
            Argument("--quiet", action="store-true", exclusive="noise"),
        ])

    def testSingleMemberSucceeds(self):
        target, _ = parse(self.config, "--json", "--quiet")
        self.assertTrue(target.json)

    def testSecondMemberFails(self):
        with self.assertRaises(MutuallyExclusiveViolationError) as context:
            parse(self.config, "--json", "--yaml")
        self.assertEqual(context.exception.options["group"], "format")
        self.assertEqual(context.exception.options["name"], "--yaml")

    def testAllMissingGroupsReported(self):
        config = ParserConfig([
            Argument("--json", action="store-true", exclusive="format"),
            Argument("--quiet", action="store-true", exclusive="noise"),
            Argument("--name", required=True),
        ], required_groups=("noise", "format"))
        with self.assertRaises(MissingRequiredGroupError) as context:
            parse(config)
        self.assertEqual(context.exception.options["missing"], ("format", "noise"))

    def testAllMissingArgumentsReported(self):
        config = ParserConfig([
            Argument("-a", "--alpha", required=True),
            Argument("-b", "--beta", required=True),
            Argument("-c", "--gamma", required=True),
        ])
        with self.assertRaises(MissingRequiredArgumentError) as context:
            parse(config, "-c", "x")
        self.assertEqual(context.exception.options["missing"], ("--alpha", "--beta"))

    def testRequirementsSatisfied(self):
        config = ParserConfig([
            Argument("--json", action="store-true", exclusive="format"),
            Argument("--name", required=True),
        ], required_groups="format")
        target, signal = parse(config, "--name", "x", "--json")
        self.assertIsNone(signal)
        self.assertEqual(target.name, "x")


class TestVerbs(TestCase):
    """Nested parses."""

    def setUp(self):
        self.build = ParserConfig([
            Argument("-x", type=int),
            Positional("REST", nargs="*"),
            Trigger("--stop", callback=lambda config: None),
        ], name="build")
        self.config = ParserConfig([
            Argument("-x", type=int),
            Positional("FILES", nargs="*"),
            Verb("build", self.build),
        ])

    def testVerbReceivesRemainingTokens(self):
        target, signal = parse(self.config, "build", "-x", "1", "extra")
        self.assertIsNone(signal)
        self.assertIsNone(target.x)
        self.assertEqual(target.verb.x, 1)
        self.assertEqual(target.verb.rest, ["extra"])

    def testOptionsBeforeVerbBelongToParent(self):
        target, _ = parse(self.config, "-x", "2", "build", "-x", "3")
        self.assertEqual(target.x, 2)
        self.assertEqual(target.verb.x, 3)

    def testOnlyFirstPositionalIsAVerb(self):
        target, _ = parse(self.config, "file", "build")
        self.assertIsNone(target.verb)
        self.assertEqual(target.files, ["file", "build"])

    def testNestedFaultsPropagate(self):
        with self.assertRaises(UnknownArgumentError):
            parse(self.config, "build", "--unknown")

    def testNestedExitPropagates(self):
        target, signal = parse(self.config, "build", "--stop", "--unknown")
        self.assertIsInstance(signal, ParserExit)
        self.assertIs(signal.trigger, self.build.long["stop"])
        self.assertIsNone(target.verb)


class TestSignals(TestCase):
    """Triggers and hooks."""

    def testTriggerReturnsExitAndStops(self):
        received = []
        stop = Trigger("-s", "--stop", callback=received.append)
        config = ParserConfig([stop, Argument("--name", required=True)])
        target, signal = parse(config, "--stop", "--unknown")
        self.assertIsInstance(signal, ParserExit)
        self.assertIs(signal.trigger, stop)
        self.assertEqual(received, [config])
        self.assertIsNone(target.name)

    def testTriggerInsideCluster(self):
        config = ParserConfig([Argument("-v", action="count"), Trigger("-s", callback=lambda config: None)])
        target, signal = parse(config, "-vsv")
        self.assertIsInstance(signal, ParserExit)
        self.assertEqual(target.v, 1)

    def testHooksRunInOrderAfterSuccess(self):
        calls = []
        config = ParserConfig(
            [Argument("--name")],
            hooks=[lambda target: calls.append(("first", target.name)), lambda target: calls.append(("second", target.name))],
        )
        parse(config, "--name", "x")
        self.assertEqual(calls, [("first", "x"), ("second", "x")])

    def testHooksSkippedOnFailure(self):
        calls = []
        config = ParserConfig([Argument("--name")], hooks=[calls.append])
        with self.assertRaises(MissingValueError):
            parse(config, "--name")
        self.assertEqual(calls, [])

    def testHookExceptionsPropagate(self):
        def reject(target):
            raise RuntimeError("rejected")

        config = ParserConfig([Argument("--name")], hooks=[reject])
        with self.assertRaises(RuntimeError):
            parse(config, "--name", "x")


class TestProperties(TestCase):
    """Whole-parse properties."""

    def setUp(self):
        self.config = ParserConfig([
            Argument("-n", "--name"),
            Argument("-t", "--tag", action="append"),
            Argument("-v", "--verbose", action="count"),
            Argument("--level", type=int, default=0),
            Positional("FILES", nargs="*"),
        ])

    def testDeterministic(self):
        tokens = ("-vv", "--name", "x", "--tag", "a", "f1", "--level=3", "f2")
        first, _ = parse(self.config, *tokens)
        second, _ = parse(self.config, *tokens)
        self.assertEqual(vars(first), vars(second))

    def testCanonicalTokensReparseToSameValues(self):
        parsed, _ = parse(self.config, "-vvv", "-nalice", "-tx", "--tag=y", "--level", "0x2", "a", "b")

        tokens = ["--name", parsed.name, "--level", str(parsed.level)]
        for tag in parsed.tag:
            tokens += ["--tag", tag]
        tokens += ["--verbose"] * parsed.verbose
        tokens += ["--", *parsed.files]

        reparsed, _ = parse(self.config, *tokens)
        self.assertEqual(vars(parsed), vars(reparsed))
        self.assertEqual(reparsed.level, 2)

    def testIndependentParsesShareConfig(self):
        first, _ = parse(self.config, "--tag", "a")
        second, _ = parse(self.config)
        self.assertEqual(first.tag, ["a"])
        self.assertEqual(second.tag, [])


if __name__ == "__main__":
    unittest.main()
