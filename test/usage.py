"""
Usage-string grammar tests.

Scope
- Switches, explicit names, value placeholders, '...' and help text.
- Equivalence with the same specification written through builder calls.
- Malformed lines fail loudly with UsageSyntaxError.
"""
import unittest
from unittest import TestCase

from arbiter import Setting, UsageSyntaxError, SpecificationError, FaultCode, argument, from_usage


class TestUsageGrammar(TestCase):

    def testDebugFlag(self):
        spec = from_usage("-d, --debug... 'turns on debugging'").build()
        self.assertEqual(spec.name, "debug")
        self.assertEqual(spec.short, "d")
        self.assertEqual(spec.long, "debug")
        self.assertTrue(spec.multiple)
        self.assertEqual(spec.help, "turns on debugging")
        self.assertFalse(spec.takes_value)
        self.assertFalse(spec.required)

    def testDebugFlagMatchesBuilder(self):
        parsed = from_usage("-d, --debug... 'turns on debugging'").build()
        built = argument("debug").short("d").long("debug").multiple().help("turns on debugging").build()
        self.assertEqual(parsed, built)
        self.assertEqual(parsed.help, built.help)

    def testNamePriorityLongThenShort(self):
        self.assertEqual(from_usage("-c --config <FILE>").build().name, "config")
        self.assertEqual(from_usage("-c <FILE>").build().name, "c")

    def testExplicitNameWins(self):
        spec = from_usage("[cfg] -c, --config=<FILE> 'configuration'").build()
        self.assertEqual(spec.name, "cfg")
        self.assertFalse(spec.required)
        self.assertEqual(spec.value_names, ("FILE",))

    def testRequiredExplicitName(self):
        spec = from_usage("<cfg> -c [FILE]").build()
        self.assertTrue(spec.required)
        self.assertEqual(spec.value_names, ("FILE",))

    def testAngleValueMakesRequiredWithoutExplicitName(self):
        self.assertTrue(from_usage("--output <FILE>").build().required)
        self.assertFalse(from_usage("--output [FILE]").build().required)

    def testPlaceholdersFixNumberOfValues(self):
        spec = from_usage("--point <X> <Y> 'a point'").build()
        self.assertEqual(spec.value_names, ("X", "Y"))
        self.assertEqual(spec.number_of_values, 2)
        self.assertTrue(spec.takes_value)
        self.assertFalse(spec.is_set(Setting.USE_VALUE_DELIMITER))

    def testSinglePlaceholderLeavesNumberOfValuesUnset(self):
        self.assertIsNone(from_usage("--output=[FILE]").build().number_of_values)

    def testTrailingEllipsisAfterValueMakesMultiple(self):
        spec = from_usage("-I, --include [DIR]... 'include path'").build()
        self.assertTrue(spec.multiple)
        self.assertTrue(spec.takes_value)

    def testPositional(self):
        spec = from_usage("<input>... 'input files'").build()
        self.assertTrue(spec.positional)
        self.assertTrue(spec.required)
        self.assertTrue(spec.multiple)
        self.assertTrue(spec.takes_value)
        self.assertEqual(spec.value_names, ("input",))
        self.assertEqual(spec.label, "<input>")

    def testOptionalPositional(self):
        spec = from_usage("[output] 'output file'").build()
        self.assertTrue(spec.positional)
        self.assertFalse(spec.required)

    def testHelpMayComeFirst(self):
        spec = from_usage("'be loud' -v --verbose").build()
        self.assertEqual(spec.help, "be loud")
        self.assertEqual(spec.name, "verbose")

    def testHyphenatedLong(self):
        self.assertEqual(from_usage("--dry-run 'simulate'").build().long, "dry-run")

    def testPositionalMatchesBuilder(self):
        parsed = from_usage("<input> 'input file'").build()
        built = argument("input").required().value_name("input").takes_value().help("input file").build()
        self.assertEqual(parsed, built)


class TestUsageErrors(TestCase):

    def assertMalformed(self, usage):
        with self.assertRaises(UsageSyntaxError) as context:
            from_usage(usage)
        self.assertIsInstance(context.exception, SpecificationError)
        self.assertIsInstance(context.exception, ValueError)
        self.assertEqual(context.exception.code, FaultCode.USAGE_SYNTAX)
        return context.exception

    def testUnbalancedBracket(self):
        self.assertMalformed("--output <FILE 'output'")

    def testUnbalancedQuote(self):
        self.assertMalformed("--output <FILE> 'output")

    def testMultiCharacterShort(self):
        self.assertMalformed("-ab 'two characters'")

    def testUnknownSigil(self):
        self.assertMalformed("--output %FILE")

    def testNoDerivableName(self):
        self.assertMalformed("'only help'")

    def testEmptyPlaceholder(self):
        self.assertMalformed("--output <>")

    def testDanglingEllipsis(self):
        self.assertMalformed("... --output")

    def testMessageNamesTheUsage(self):
        error = self.assertMalformed("--output <FILE")
        self.assertIn("--output <FILE", str(error))

    def testNonStringUsage(self):
        with self.assertRaises(TypeError):
            from_usage(42)


if __name__ == "__main__":
    unittest.main()
