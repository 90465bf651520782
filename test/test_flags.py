"""
FlagSet behavioral tests (definition, parsing, tolerance, defaults table).

Scope
- Validate definition rules: names, shorthands, redefinition.
- Validate long/short forms, clusters, terminator and positional offsets.
- Validate faults for unknown, missing and malformed values.
- Validate tolerant mode and the implicit help signal.
- Validate the defaults table layout and hidden flags.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from commandeer import (
    BoolValue,
    FlagAssignmentError,
    FlagSet,
    HelpRequested,
    InvalidValueError,
    MalformedTokenError,
    OptionValueRequiredError,
    UnknownSwitchError,
)


class TestDefinition(TestCase):
    def setUp(self) -> None:
        self.flags = FlagSet("tool")

    def testRedefinitionRaises(self):
        self.flags.boolean("verbose")
        with self.assertRaises(ValueError) as context:
            self.flags.boolean("verbose")
        self.assertEqual(str(context.exception), "tool flag redefined: verbose")

    def testShorthandConflictRaises(self):
        self.flags.boolean("verbose", "v")
        with self.assertRaises(ValueError):
            self.flags.boolean("version", "v")

    def testInvalidNamesRejected(self):
        for name in ("", "-x", "two words", "9lives", "trailing-"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    self.flags.boolean(name)

    def testLongShorthandRejected(self):
        with self.assertRaises(ValueError):
            self.flags.boolean("verbose", "vv")

    def testValueWithoutProtocolRejected(self):
        with self.assertRaises(TypeError):
            self.flags.var(object(), "thing")

    def testDefaultStringTakenFromValue(self):
        self.assertEqual(self.flags.boolean("on", default=True).default, "true")
        self.assertEqual(self.flags.option("threads", type=int, default=4).default, "4")
        self.assertEqual(self.flags.option("name").default, "")

    def testIterationIsSortedByName(self):
        for name in ("zeta", "alpha", "mid"):
            self.flags.boolean(name)
        self.assertEqual([flag.name for flag in self.flags], ["alpha", "mid", "zeta"])
        self.assertEqual(len(self.flags), 3)


class TestParse(TestCase):
    def setUp(self) -> None:
        self.flags = FlagSet("tool")
        self.flags.boolean("verbose", "v")
        self.flags.boolean("all", "a")
        self.flags.option("threads", "t", type=int, default=1)
        self.flags.option("output", "o")

    def testInterspersedPositionals(self):
        self.flags.parse(["build", "-v", "src", "--threads=4", "dst"])
        self.assertTrue(self.flags["verbose"])
        self.assertEqual(self.flags["threads"], 4)
        self.assertEqual(self.flags.args, ("build", "src", "dst"))
        self.assertEqual(self.flags.offsets, (0, 2, 4))

    def testSpacedValueIsConsumed(self):
        self.flags.parse(["--output", "file.txt", "rest"])
        self.assertEqual(self.flags["output"], "file.txt")
        self.assertEqual(self.flags.args, ("rest",))
        self.assertEqual(self.flags.offsets, (2,))

    def testShortForms(self):
        for tokens in (["-ofile"], ["-o", "file"], ["-o=file"], ["-vaofile"]):
            with self.subTest(tokens=tokens):
                self.flags.reset()
                self.flags.parse(tokens)
                self.assertEqual(self.flags["output"], "file")

    def testBooleanCluster(self):
        self.flags.parse(["-va"])
        self.assertTrue(self.flags["verbose"])
        self.assertTrue(self.flags["all"])

    def testExplicitBooleanValue(self):
        self.flags.parse(["--verbose=false", "-a=0"])
        self.assertFalse(self.flags["verbose"])
        self.assertFalse(self.flags["all"])
        self.assertTrue(self.flags.changed("verbose"))

    def testTerminatorKeepsRest(self):
        self.flags.parse(["a", "--", "-v", "--threads=2"])
        self.assertFalse(self.flags["verbose"])
        self.assertEqual(self.flags.args, ("a", "-v", "--threads=2"))
        self.assertEqual(self.flags.offsets, (0, 2, 3))

    def testLoneDashIsPositional(self):
        self.flags.parse(["-"])
        self.assertEqual(self.flags.args, ("-",))

    def testUnknownFlagRaises(self):
        with self.assertRaises(UnknownSwitchError) as context:
            self.flags.parse(["--nope"])
        self.assertEqual(str(context.exception), "unknown flag: --nope")

    def testUnknownShorthandRaises(self):
        with self.assertRaises(UnknownSwitchError) as context:
            self.flags.parse(["-vz"])
        self.assertEqual(str(context.exception), "unknown flag: -z")

    def testMissingValue(self):
        for tokens in (["--output"], ["-o"]):
            with self.subTest(tokens=tokens):
                with self.assertRaises(OptionValueRequiredError):
                    self.flags.parse(tokens)

    def testBadBoolean(self):
        with self.assertRaises(FlagAssignmentError):
            self.flags.parse(["--verbose=maybe"])

    def testBadConversion(self):
        with self.assertRaises(InvalidValueError) as context:
            self.flags.parse(["--threads", "many"])
        self.assertEqual(str(context.exception), "invalid argument 'many' for '--threads' flag")

    def testMalformedLongFlag(self):
        for token in ("---x", "--=x"):
            with self.subTest(token=token):
                with self.assertRaises(MalformedTokenError):
                    self.flags.parse([token])

    def testUndefinedHelpRequestsHelp(self):
        for token in ("--help", "-h"):
            with self.subTest(token=token):
                console = Console(file=io.StringIO(), width=120)
                flags = FlagSet("tool", console=console)
                flags.option("output", "o", usage="target file")
                with self.assertRaises(HelpRequested):
                    flags.parse([token])
                self.assertEqual(console.file.getvalue(), (
                    "Usage of tool:\n"
                    "  -o, --output str   target file\n"
                ))

    def testUsageHookReplacesDefaultText(self):
        console = Console(file=io.StringIO(), width=120)
        flags = FlagSet("tool", console=console)
        calls = []
        flags.usage = lambda: calls.append(flags.name)
        with self.assertRaises(HelpRequested):
            flags.parse(["--help"])
        self.assertEqual(calls, ["tool"])
        self.assertEqual(console.file.getvalue(), "")

    def testUsageHookMustBeCallable(self):
        with self.assertRaises(TypeError):
            self.flags.usage = "usage"

    def testDefinedHelpIsAFlag(self):
        self.flags.boolean("help", "h")
        self.flags.parse(["-h"])
        self.assertTrue(self.flags["help"])

    def testResetRestoresDefaults(self):
        self.flags.parse(["-v", "--threads=8", "x"])
        self.flags.reset()
        self.assertFalse(self.flags["verbose"])
        self.assertEqual(self.flags["threads"], 1)
        self.assertEqual(self.flags.args, ())
        self.assertFalse(self.flags.changed("threads"))

    def testSetAssignsLikeCommandLine(self):
        self.flags.set("verbose", "true")
        self.assertTrue(self.flags["verbose"])
        with self.assertRaises(KeyError):
            self.flags.set("nope", "true")


class TestTolerant(TestCase):
    def setUp(self) -> None:
        self.flags = FlagSet("tool", tolerant=True)
        self.flags.boolean("quiet")

    def testUnknownFlagsDropped(self):
        self.flags.parse(["--unknown", "-x", "--quiet", "cmd"])
        self.assertTrue(self.flags["quiet"])
        self.assertEqual(self.flags.args, ("cmd",))

    def testUnknownFlagSwallowsBareValue(self):
        self.flags.parse(["cmd", "--name", "value", "--other=1", "next"])
        self.assertEqual(self.flags.args, ("cmd", "next"))
        self.assertEqual(self.flags.offsets, (0, 4))

    def testUnknownShorthandInClusterSwallowsBareValue(self):
        self.flags.boolean("all", "a")
        self.flags.parse(["-za", "value", "cmd"])
        self.assertTrue(self.flags["all"])
        self.assertEqual(self.flags.args, ("cmd",))
        self.assertEqual(self.flags.offsets, (2,))

    def testUnknownShorthandWithInlineValueKeepsNextToken(self):
        self.flags.parse(["-z=1", "cmd"])
        self.assertEqual(self.flags.args, ("cmd",))

    def testUnknownFlagLeavesDashedTokens(self):
        self.flags.parse(["--name", "--quiet"])
        self.assertTrue(self.flags["quiet"])

    def testToleranceCanBeToggled(self):
        self.flags.tolerant = False
        with self.assertRaises(UnknownSwitchError):
            self.flags.parse(["--unknown"])


class TestDefaults(TestCase):
    def testTableLayout(self):
        flags = FlagSet("tool")
        flags.boolean("verbose", "v", usage="talk more")
        flags.option("threads", "t", type=int, default=4, usage="worker count")
        flags.option("name", default="world", usage="who to greet")
        flags.option("output", usage="target file")
        self.assertEqual(flags.defaults(), (
            "      --name str      who to greet (default \"world\")\n"
            "      --output str    target file\n"
            "  -t, --threads int   worker count (default 4)\n"
            "  -v, --verbose       talk more\n"
        ))

    def testHiddenFlagsOmitted(self):
        flags = FlagSet("tool")
        flags.boolean("shown", usage="visible")
        flags.boolean("secret", usage="invisible")
        flags.mark_hidden("secret")
        self.assertEqual(flags.defaults(), "      --shown   visible\n")

        flags.mark_hidden("secret", False)
        self.assertIn("--secret", flags.defaults())

    def testEmptyWhenAllHidden(self):
        flags = FlagSet("tool")
        flags.boolean("secret")
        flags.mark_hidden("secret")
        self.assertEqual(flags.defaults(), "")

    def testSharedValuesObserveEachOther(self):
        value = BoolValue()
        first, second = FlagSet("first"), FlagSet("second")
        first.var(value, "debug")
        second.var(value, "debug")
        second.parse(["--debug"])
        self.assertTrue(first["debug"])


if __name__ == "__main__":
    unittest.main()
