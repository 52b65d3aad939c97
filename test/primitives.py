"""
Primitive parsers behavioral tests (constant, option, flag, argument, command).

Scope
- Validate matching rules of options: exact names, attached values
  (--name=value, /name:value), bundled short switches, single use.
- Validate the "--" terminator latch shared by options and arguments.
- Validate completion of absent or invalid primitives and their messages.
- Validate construction checks and error overrides.

Conventions
- Test method names follow CamelCase per project convention.
- Inputs go through the public parse() driver; messages are compared in their
  plain formatted form.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argloom import (
    argument,
    command,
    constant,
    flag,
    format_message,
    integer,
    message,
    object_,
    option,
    parse,
    string,
)


class ParserTestCase(TestCase):
    def assertParses(self, parser, args, expected):
        result = parse(parser, args)
        self.assertTrue(result.success, format_message(result.error) if not result.success else "")
        self.assertEqual(result.value, expected)

    def assertFailsWith(self, parser, args, expected):
        result = parse(parser, args)
        self.assertFalse(result.success)
        self.assertEqual(format_message(result.error), expected)


class TestConstant(ParserTestCase):
    """constant()"""

    def testCompletesToValueWithoutInput(self):
        self.assertParses(constant(42), [], 42)

    def testNeverConsumes(self):
        self.assertFailsWith(constant(42), ["x"], 'Unexpected option or argument: "x".')

    def testPriority(self):
        self.assertEqual(constant(1).priority, 0)


class TestOption(ParserTestCase):
    """option()"""

    def testBooleanSwitch(self):
        self.assertParses(option("-v", "--verbose"), ["--verbose"], True)
        self.assertParses(object_({"v": option("-v")}), [], {"v": False})

    def testValuedForms(self):
        parser = option("-p", "--port", integer())
        self.assertParses(parser, ["--port", "8080"], 8080)
        self.assertParses(parser, ["-p", "8080"], 8080)
        self.assertParses(parser, ["--port=8080"], 8080)
        self.assertParses(option("/p", integer()), ["/p:3"], 3)

    def testValueParserByKeyword(self):
        self.assertParses(option("--name", value=string()), ["--name", "x"], "x")

    def testMissingValue(self):
        self.assertFailsWith(option("-p", integer()), ["-p"], "Option `-p` requires a value, but got no value.")

    def testInvalidValueReportedAtCompletion(self):
        self.assertFailsWith(
            option("-p", "--port", integer()), ["-p", "x"],
            '`-p`/`--port`: Expected a valid integer, but got "x".',
        )

    def testMissingValuedOption(self):
        parser = object_({"verbose": option("-v"), "port": option("-p", integer())})
        self.assertFailsWith(parser, ["-v"], "Missing option `-p`.")

    def testBooleanRejectsAttachedValue(self):
        self.assertFailsWith(
            option("--verbose"), ["--verbose=yes"], 'Option `--verbose` is a Boolean flag, but got a value: "yes".'
        )

    def testBundledShortSwitches(self):
        parser = object_({"a": option("-a"), "b": option("-b"), "c": option("-c")})
        self.assertParses(parser, ["-abc"], {"a": True, "b": True, "c": True})
        self.assertParses(parser, ["-ca"], {"a": True, "b": False, "c": True})

    def testSingleUse(self):
        self.assertFailsWith(object_({"v": option("-v")}), ["-v", "-v"], "`-v` cannot be used multiple times.")
        self.assertFailsWith(
            object_({"p": option("-p", integer())}), ["-p", "1", "-p", "2"],
            "`-p` cannot be used multiple times.",
        )

    def testTerminatorLatch(self):
        parser = object_({"v": option("-v"), "file": argument(string())})
        self.assertParses(parser, ["--", "-v"], {"v": False, "file": "-v"})

    def testNoMatchSuggestsSpelling(self):
        self.assertFailsWith(
            option("--verbose"), ["--verbos"], "No matched option for `--verbos`.\n\nDid you mean `--verbose`?"
        )

    def testNameValidation(self):
        with self.assertRaises(TypeError):
            option()
        with self.assertRaises(TypeError):
            option(3)
        for name in ("verbose", "--", "-", "--a b", "---x"):
            with self.subTest(name=name), self.assertRaises(ValueError):
                option(name)
        with self.assertRaises(ValueError):
            option("-v", "-v")

    def testValueParserGivenTwice(self):
        with self.assertRaises(TypeError):
            option("-p", integer(), value=integer())

    def testAcceptedSpellings(self):
        self.assertEqual(option("-v", "--verbose", "/v", "+v").names, ("-v", "--verbose", "/v", "+v"))

    def testErrorOverrides(self):
        self.assertFailsWith(option("-p", integer(), errors={"no_value": "give me a port"}), ["-p"], "give me a port")
        self.assertFailsWith(
            option("--verbose", errors={"no_match": lambda token, found: message("What is {}?", token)}),
            ["--verbos"],
            'What is "--verbos"?',
        )

    def testErrorOverridesValidated(self):
        with self.assertRaises(ValueError):
            option("-v", errors={"nope": "x"})
        with self.assertRaises(TypeError):
            option("-v", errors={"no_match": 3})
        with self.assertRaises(TypeError):
            option("-v", errors="x")

    def testPriority(self):
        self.assertEqual(option("-v").priority, 10)


class TestFlag(ParserTestCase):
    """flag()"""

    def testPresent(self):
        self.assertParses(object_({"force": flag("--force")}), ["--force"], {"force": True})

    def testRequired(self):
        parser = object_({"force": flag("-f", "--force"), "x": option("-x")})
        self.assertFailsWith(parser, ["-x"], "Required flag `-f`/`--force` is missing.")

    def testRejectsAttachedValue(self):
        self.assertFailsWith(flag("--force"), ["--force=1"], 'Flag `--force` does not accept a value, but got: "1".')

    def testRejectsValueParser(self):
        with self.assertRaises(TypeError):
            flag("--force", integer())


class TestArgument(ParserTestCase):
    """argument()"""

    def testSingleToken(self):
        self.assertParses(argument(string("FILE")), ["a.txt"], "a.txt")

    def testLeavesOptionsToSiblings(self):
        self.assertFailsWith(argument(string()), ["--flag"], "Expected an argument, but got an option: `--flag`.")

    def testEndOfInput(self):
        self.assertFailsWith(argument(string("FILE")), [], "Expected a `FILE`, but got end of input.")

    def testSeveralArgumentsFillInOrder(self):
        parser = object_({"a": argument(string("A")), "b": argument(string("B"))})
        self.assertParses(parser, ["x", "y"], {"a": "x", "b": "y"})

    def testTooFewArguments(self):
        parser = object_({"a": argument(string("A")), "v": option("-v")})
        self.assertFailsWith(parser, ["-v"], "Expected a `A`, but too few arguments.")

    def testInvalidValue(self):
        self.assertFailsWith(argument(integer("N")), ["x"], '`N`: Expected a valid integer, but got "x".')

    def testTerminatorConsumed(self):
        self.assertParses(argument(string()), ["--", "--flag"], "--flag")

    def testRequiresValueParser(self):
        with self.assertRaises(TypeError):
            argument(option("-v"))

    def testPriority(self):
        self.assertEqual(argument(string()).priority, 5)


class TestCommand(ParserTestCase):
    """command()"""

    def testDelegatesAfterName(self):
        parser = command("add", object_({"force": option("-f")}))
        self.assertParses(parser, ["add", "-f"], {"force": True})
        self.assertParses(parser, ["add"], {"force": False})

    def testMismatchSuggestsCommand(self):
        self.assertFailsWith(
            command("add", constant(1)), ["ad"], 'Expected command `add`, but got "ad".\n\nDid you mean `add`?'
        )

    def testEndOfInput(self):
        self.assertFailsWith(command("add", constant(1)), [], "Expected command `add`, but got end of input.")

    def testNotMatchedAtCompletion(self):
        result = command("add", constant(1)).complete(None)
        self.assertEqual(format_message(result.error), "Command `add` was not matched.")

    def testOpensNewOptionNamespace(self):
        self.assertEqual(command("run", option("-v")).spellings, ())

    def testNameValidation(self):
        with self.assertRaises(ValueError):
            command("", constant(1))
        with self.assertRaises(ValueError):
            command("a b", constant(1))
        with self.assertRaises(TypeError):
            command("add", "parser")

    def testPriorityAndDescription(self):
        parser = command("add", constant(1), description="add things")
        self.assertEqual(parser.priority, 15)
        self.assertEqual(format_message(parser.description), "add things")
        self.assertIsNone(parser.initial)


if __name__ == "__main__":
    unittest.main()
