"""
Faults module behavioral tests.

Scope
- FaultCode normalization and host overrides through __main__.__codes__.
- getdoc() lookups through __main__.__docs__.
- Rendering of errors and warnings with rich (plain and fancy).
- trigger(): raising, warning, and shell-mode rendering with exit.
- Resolver.matches() surfacing resolution errors.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering goes to an in-memory console without colors.
"""
import copy
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from arbiter import *


def render(renderable, /):
    buffer = io.StringIO()
    Console(file=buffer, color_system=None, width=120).print(renderable)
    return buffer.getvalue()


class TestFaultCode(TestCase):

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.ARGUMENT_CONFLICT.normalize(), "21101")
        self.assertEqual(FaultCode.USAGE_SYNTAX.normalize(), "23121")

    def testNormalizeHonoursHostCodes(self):
        with mock.patch.object(sys.modules["__main__"], "__codes__", {FaultCode.INVALID_VALUE: "E-VALUE"}, create=True):
            self.assertEqual(FaultCode.INVALID_VALUE.normalize(), "E-VALUE")
            self.assertEqual(FaultCode.EMPTY_VALUE.normalize(), "21122")

    def testGetdoc(self):
        with mock.patch.object(sys.modules["__main__"], "__docs__", {FaultCode.INVALID_VALUE: "see values"}, create=True):
            self.assertEqual(getdoc(FaultCode.INVALID_VALUE), "see values")
            self.assertIsNone(getdoc(FaultCode.EMPTY_VALUE))
        with self.assertRaises(TypeError):
            getdoc(21121)


class TestResolutionError(TestCase):

    def setUp(self):
        self.error = ArgumentConflictError(
            "argument '--alpha' cannot be used with '--beta'",
            arguments=("alpha", "beta"),
            hint="remove one of them",
            prog="tool",
        )

    def testDefaults(self):
        self.assertEqual(self.error.code, FaultCode.ARGUMENT_CONFLICT)
        self.assertEqual(self.error.options["title"], "argument conflict")
        self.assertEqual(self.error.arguments, ("alpha", "beta"))
        self.assertEqual(self.error.values, ())
        self.assertFalse(self.error.options["shell"])

    def testStr(self):
        self.assertEqual(str(self.error), "argument '--alpha' cannot be used with '--beta'")
        self.assertEqual(str(EmptyValueError()), "empty value")

    def testEqualityIgnoresPresentation(self):
        other = copy.replace(self.error, hint="something else", fancy=True)
        self.assertEqual(self.error, other)
        self.assertEqual(hash(self.error), hash(other))
        self.assertNotEqual(self.error, MissingRequiredArgumentError(self.error.message, arguments=("alpha", "beta")))

    def testReplaceKeepsTypeAndMessage(self):
        other = copy.replace(self.error, hint="changed")
        self.assertIsInstance(other, ArgumentConflictError)
        self.assertEqual(other.message, self.error.message)
        self.assertEqual(other.options["hint"], "changed")
        self.assertEqual(self.error.options["hint"], "remove one of them")

    def testRender(self):
        output = render(self.error)
        self.assertIn("[ tool — 21101 | Argument Conflict ]", output)
        self.assertIn("argument '--alpha' cannot be used with '--beta'", output)
        self.assertIn("→ remove one of them", output)

    def testRenderFancyWithDocs(self):
        output = render(copy.replace(self.error, fancy=True, docs="https://example.org/conflicts"))
        self.assertIn("Argument Conflict", output)
        self.assertIn("https://example.org/conflicts", output)
        self.assertIn("╭", output)

    def testRenderWithoutColors(self):
        output = render(copy.replace(self.error, colorful=False))
        self.assertIn("remove one of them", output)


class TestTrigger(TestCase):

    def testRaisesOutsideShell(self):
        error = InvalidValueError("bad value", arguments=("mode",), values=("x",))
        with self.assertRaises(InvalidValueError) as context:
            trigger(error, hint="pick another")
        self.assertEqual(context.exception, error)
        self.assertEqual(context.exception.options["hint"], "pick another")

    def testRendersAndExitsInShell(self):
        buffer = io.StringIO()
        with mock.patch("arbiter.faults.console", Console(file=buffer, color_system=None, width=120)):
            with self.assertRaises(SystemExit) as context:
                trigger(TooManyValuesError("too many"), shell=True, prog="tool")
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Too Many Values", buffer.getvalue())
        self.assertIn("too many", buffer.getvalue())

    def testWarningsGoThroughWarningsModule(self):
        with self.assertWarns(ContradictoryRuleWarning):
            trigger(ContradictoryRuleWarning("always contradicts"))

    def testWarningsRenderInShell(self):
        buffer = io.StringIO()
        with mock.patch("arbiter.faults.console", Console(file=buffer, color_system=None, width=120)):
            trigger(ImpossibleDefaultWarning("default 'z' is not possible", hint="fix it"), shell=True, prog="tool")
        self.assertIn("22102 | Impossible Default", buffer.getvalue())
        self.assertIn("→ fix it", buffer.getvalue())

    def testRejectsForeignObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestSpecificationError(TestCase):

    def testIsValueErrorWithCode(self):
        error = UnknownReferenceError("argument 'a' refers to unknown 'b'", argument="a", reference="b")
        self.assertIsInstance(error, SpecificationError)
        self.assertIsInstance(error, ValueError)
        self.assertEqual(error.code, FaultCode.UNKNOWN_REFERENCE)
        self.assertEqual(error.options["reference"], "b")
        self.assertEqual(str(error), "argument 'a' refers to unknown 'b'")


class TestResolverMatches(TestCase):

    def testReturnsMatches(self):
        resolver = Resolver([argument("verbose").long("verbose")])
        self.assertTrue(resolver.matches({"verbose": [[]]}).is_present("verbose"))

    def testRaisesResolutionError(self):
        resolver = Resolver([argument("config").long("config").takes_value().required()])
        with self.assertRaises(MissingRequiredArgumentError) as context:
            resolver.matches(Occurrences())
        self.assertEqual(context.exception.arguments, ("config",))

    def testShellModeExitsWithDocs(self):
        buffer = io.StringIO()
        resolver = Resolver([argument("config").long("config").takes_value().required()], shell=True, prog="tool")
        with (
            mock.patch("arbiter.faults.console", Console(file=buffer, color_system=None, width=120)),
            mock.patch.object(
                sys.modules["__main__"], "__docs__", {FaultCode.MISSING_REQUIRED_ARGUMENT: "see --help"}, create=True
            ),
        ):
            with self.assertRaises(SystemExit):
                resolver.matches(Occurrences())
        output = buffer.getvalue()
        self.assertIn("tool", output)
        self.assertIn("'--config'", output)
        self.assertIn("see --help", output)

    def testShellModeRendersWarnings(self):
        buffer = io.StringIO()
        with mock.patch("arbiter.faults.console", Console(file=buffer, color_system=None, width=120)):
            Resolver(
                [argument("a").long("a").requires("b").conflicts_with("b"), argument("b").long("b")],
                shell=True,
            )
        self.assertIn("Contradictory Rule", buffer.getvalue())


if __name__ == "__main__":
    unittest.main()
