"""
Declarative loader tests.

Scope
- Every setting key maps onto the blueprint mutator of the same name.
- Single strings are accepted where a rule takes several names.
- Unknown keys raise UnknownSettingError.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from arbiter import *


class TestFromMapping(TestCase):

    def testScalarSettings(self):
        spec = from_mapping({
            "config": {
                "short": "c",
                "long": "config",
                "help": "configuration file",
                "value_name": "FILE",
                "default_value": "arbiter.toml",
                "display_order": 1,
                "required": False,
            }
        }).build()
        self.assertEqual(spec.short, "c")
        self.assertEqual(spec.long, "config")
        self.assertEqual(spec.value_names, ("FILE",))
        self.assertEqual(spec.default_value, "arbiter.toml")
        self.assertEqual(spec.display_order, 1)
        self.assertFalse(spec.required)

    def testSameAsBuilder(self):
        loaded = from_mapping({"debug": {"short": "d", "long": "debug", "multiple": True, "global": True}}).build()
        built = argument("debug").short("d").long("debug").multiple().global_().build()
        self.assertEqual(loaded, built)

    def testNamesAcceptStringOrList(self):
        spec = from_mapping({
            "fast": {
                "long": "fast",
                "requires": "workers",
                "conflicts_with": ["slow", "safe"],
                "overrides_with": "fast",
                "group": "speed",
            }
        }).build()
        self.assertEqual(spec.requires, ((None, "workers"),))
        self.assertEqual(spec.conflicts_with, ("slow", "safe"))
        self.assertEqual(spec.overrides_with, ("fast",))
        self.assertEqual(spec.groups, ("speed",))

    def testConditionalRules(self):
        spec = from_mapping({
            "output": {
                "long": "output",
                "requires_if": ["file", "path"],
                "required_if": [["format", "file"], ["mode", "save"]],
                "default_value_if": ["format", None, "out.json"],
            }
        }).build()
        self.assertEqual(spec.requires, (("file", "path"),))
        self.assertEqual(spec.required_ifs, (("format", "file"), ("mode", "save")))
        self.assertEqual(spec.default_value_ifs, (("format", None, "out.json"),))

    def testEmptySettings(self):
        spec = from_mapping({"input": None}).build()
        self.assertTrue(spec.positional)

    def testUnknownSetting(self):
        with self.assertRaises(UnknownSettingError) as context:
            from_mapping({"config": {"shrot": "c"}})
        self.assertEqual(context.exception.options["key"], "shrot")
        self.assertEqual(context.exception.options["argument"], "config")
        self.assertEqual(context.exception.code, FaultCode.UNKNOWN_SETTING)

    def testMalformedInput(self):
        with self.assertRaises(TypeError):
            from_mapping({"a": {}, "b": {}})
        with self.assertRaises(TypeError):
            from_mapping({"a": ["short", "a"]})
        with self.assertRaises(TypeError):
            from_mapping({"a": {"required_if": ["format"]}})
        with self.assertRaises(TypeError):
            from_mapping({"a": {"conflicts_with": 3}})


class TestFromMappings(TestCase):

    def testMappingKeepsOrder(self):
        blueprints = from_mappings({"b": {"long": "b"}, "a": {"long": "a"}})
        self.assertEqual([blueprint.name for blueprint in blueprints], ["b", "a"])

    def testIterableOfMappings(self):
        blueprints = from_mappings([{"a": {"long": "a"}}, {"b": {"long": "b", "requires": "a"}}])
        resolver = Resolver(blueprints)
        self.assertIsInstance(resolver.resolve({"b": [[]]}), MissingRequiredArgumentError)


if __name__ == "__main__":
    unittest.main()
