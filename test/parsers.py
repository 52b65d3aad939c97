"""
Parser contract and drivers tests (parse, suggest, run) plus faults.

Scope
- Validate the immutable values threaded through parsers and their flags.
- Validate driver argument checks and the no-progress guard.
- Validate completion suggestions for option names, attached and detached
  values, and commands.
- Validate run(): returned values, ParseError options (code, index, title,
  hint) and shell-mode rendering on the fault console.
- Validate fault helpers and the introspection surface of parsers.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from argloom import (
    Context,
    Failure,
    FaultCode,
    Invalid,
    LongestMatch,
    Message,
    ParseError,
    Success,
    Valid,
    WithDefault,
    WithDefaultError,
    argument,
    choice,
    command,
    constant,
    format_message,
    getdoc,
    integer,
    message,
    object_,
    option,
    optional,
    or_,
    parse,
    run,
    string,
    suggest,
    trigger,
)
from argloom import faults


def texts(suggestions):
    return [suggestion.text for suggestion in suggestions]


class TestValues(TestCase):
    """Context and results."""

    def testContextDefaults(self):
        context = Context(("a",), None)
        self.assertFalse(context.terminated)
        self.assertEqual(context.usage, ())
        self.assertEqual(copy.replace(context, terminated=True).buffer, ("a",))

    def testResultFlags(self):
        self.assertTrue(Success(Context((), None)).success)
        self.assertEqual(Success(Context((), None)).consumed, ())
        self.assertFalse(Failure(0, message("x")).success)
        self.assertTrue(Valid(1).success)
        self.assertFalse(Invalid(message("x")).success)


class TestParseDriver(TestCase):
    """parse()"""

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            parse("-v", [])
        with self.assertRaises(TypeError):
            parse(option("-v"), "-v")
        with self.assertRaises(TypeError):
            parse(option("-v"), ["-v", 1])

    def testAcceptsAnyIterable(self):
        self.assertEqual(parse(option("-v"), iter(["-v"])).value, True)

    def testStopsWithoutProgress(self):
        result = parse(optional(option("-v")), ["-v", "stray"])
        self.assertFalse(result.success)
        self.assertEqual(format_message(result.error), 'Unexpected option or argument: "stray".')

    def testRootIsSteppedOnEmptyInput(self):
        result = parse(option("-v"), [])
        self.assertFalse(result.success)
        self.assertEqual(format_message(result.error), "Expected an option, but got end of input.")


class TestSuggestDriver(TestCase):
    """suggest()"""

    PARSER = object_({
        "verbose": option("-v", "--verbose"),
        "port": option("-p", "--port", integer()),
        "format": option("--format", choice(["json", "yaml"])),
    })

    def testOptionPrefixes(self):
        self.assertEqual(texts(suggest(self.PARSER, ["--v"])), ["--verbose"])
        self.assertEqual(texts(suggest(self.PARSER, ["--"])), ["--verbose", "--port", "--format"])

    def testLoneDashOffersShortNames(self):
        self.assertEqual(texts(suggest(self.PARSER, ["-"])), ["-v", "-p"])

    def testValueAfterName(self):
        self.assertEqual(texts(suggest(self.PARSER, ["--format", "j"])), ["json"])

    def testAttachedValue(self):
        self.assertEqual(texts(suggest(self.PARSER, ["--format=y"])), ["--format=yaml"])

    def testCommands(self):
        parser = or_(
            command("serve", object_({"verbose": option("-v", "--verbose")}), description="serve a directory"),
            command("status", constant(None)),
        )
        suggestions = suggest(parser, ["s"])
        self.assertEqual(texts(suggestions), ["serve", "status"])
        self.assertEqual(format_message(suggestions[0].description), "serve a directory")
        self.assertIsNone(suggestions[1].description)
        self.assertEqual(texts(suggest(parser, ["serve", "-"])), ["-v"])

    def testDeduplicates(self):
        self.assertEqual(texts(suggest(or_(option("-a"), option("-a")), ["-"])), ["-a"])

    def testArgumentValues(self):
        parser = argument(choice(["start", "stop"], "ACTION"))
        self.assertEqual(texts(suggest(parser, ["st"])), ["start", "stop"])
        self.assertEqual(texts(suggest(parser, ["start", "st"])), [])

    def testRequiresPrefix(self):
        with self.assertRaises(ValueError):
            suggest(self.PARSER, [])
        with self.assertRaises(TypeError):
            suggest(None, ["-"])


class TestRunDriver(TestCase):
    """run()"""

    def testReturnsValue(self):
        self.assertEqual(run(object_({"v": option("-v")}), ["-v"], prog="tool"), {"v": True})

    def testUnparsableInput(self):
        with self.assertRaises(ParseError) as context:
            run(option("-v"), ["-v", "-x"], prog="tool")
        error = context.exception
        self.assertEqual(error.options["code"], FaultCode.UNPARSABLE_INPUT)
        self.assertEqual(error.options["index"], 2)
        self.assertEqual(error.options["title"], "unparsable input")
        self.assertEqual(error.options["hint"], "parsing stopped at '-x' from second position; usage: tool [-v]")
        self.assertTrue(str(error).startswith("No matched option for `-x`."))
        self.assertIsNone(error.options["docs"])

    def testIncompleteInput(self):
        with self.assertRaises(ParseError) as context:
            run(object_({"port": option("-p", integer())}), [], prog="tool")
        error = context.exception
        self.assertEqual(error.options["code"], FaultCode.INCOMPLETE_INPUT)
        self.assertEqual(error.options["index"], 0)
        self.assertEqual(
            error.options["hint"], "all arguments were read but something is missing; usage: tool -p INTEGER"
        )
        self.assertEqual(str(error), "Expected an option or argument, but got end of input.")

    def testShellModeRendersAndExits(self):
        with faults.console.capture() as capture:
            with self.assertRaises(SystemExit) as context:
                run(argument(integer("COUNT")), ["x"], prog="tool", shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        output = capture.get()
        self.assertIn("tool", output)
        self.assertIn("11102", output)
        self.assertIn("Incomplete Input", output)
        self.assertIn('`COUNT`: Expected a valid integer, but got "x".', output)

    def testShellModeFancyPanel(self):
        with faults.console.capture() as capture:
            with self.assertRaises(SystemExit):
                run(option("-v"), ["-v", "-x"], prog="tool", shell=True, fancy=True, colorful=False)
        output = capture.get()
        self.assertIn("11101", output)
        self.assertIn("Unparsable Input", output)


class TestFaults(TestCase):
    """FaultCode, ParseError, WithDefaultError, trigger(), getdoc()"""

    def testFaultCodes(self):
        self.assertEqual(FaultCode.UNPARSABLE_INPUT.normalize(), "11101")
        self.assertEqual(int(FaultCode.DUPLICATE_OPTION), 11201)

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.INCOMPLETE_INPUT))
        with self.assertRaises(TypeError):
            getdoc(11101)

    def testTrigger(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("x"))
        with self.assertRaises(ParseError) as context:
            trigger(ParseError("boom"), code=FaultCode.INCOMPLETE_INPUT)
        self.assertEqual(context.exception.options["code"], FaultCode.INCOMPLETE_INPUT)
        self.assertEqual(str(context.exception), "boom")

    def testParseErrorReplace(self):
        error = copy.replace(ParseError(message("bad {}", "x"), prog="a"), prog="b", index=1)
        self.assertEqual(dict(error.options), {"prog": "b", "index": 1})
        self.assertEqual(str(error), 'bad "x"')

    def testWithDefaultError(self):
        error = WithDefaultError("no value")
        self.assertIsInstance(error.message, Message)
        self.assertEqual(str(error), "no value")
        with self.assertRaises(TypeError):
            WithDefaultError(3)


class TestIntrospection(TestCase):
    """Typenames, mirrored properties and reprs."""

    def testTypenames(self):
        self.assertEqual(LongestMatch.__typename__, "longest-match")
        self.assertEqual(WithDefault.__typename__, "with-default")

    def testRepr(self):
        self.assertEqual(repr(constant(1)), "constant(priority=0, value=1)")

    def testReadOnlyProperties(self):
        parser = option("-v", "--verbose")
        self.assertEqual(parser.names, ("-v", "--verbose"))
        self.assertIsNone(parser.value)
        with self.assertRaises(AttributeError):
            parser.names = ("-x",)
        self.assertEqual(string("NAME").metavar, "NAME")


if __name__ == "__main__":
    unittest.main()
