"""
Tests for parse results.

This module verifies:
- ArgumentRecord: defaults, truthiness, sequence behavior, immutability, equality.
- Arguments: lookups that never raise, called(), membership, invoke() and show().
"""
import io
import unittest
from unittest import TestCase

from rich.console import Console

from argtree import ArgumentRecord, Arguments, MissingActionError, FaultCode


class ArgumentRecordTest(TestCase):
    """
    Test suite for `ArgumentRecord`.
    """

    def testEmptyRecord(self) -> None:
        record = ArgumentRecord()
        self.assertEqual(record.values, ())
        self.assertIsNone(record.env)
        self.assertFalse(record.called)
        self.assertFalse(record)
        self.assertEqual(record.value, "")
        self.assertEqual(len(record), 0)

    def testCalledRecord(self) -> None:
        record = ArgumentRecord(["a", "b"], env="/home", called=True)
        self.assertTrue(record)
        self.assertEqual(record.values, ("a", "b"))
        self.assertEqual(record.value, "a")
        self.assertEqual(record[1], "b")
        self.assertEqual(list(record), ["a", "b"])
        self.assertEqual(record.env, "/home")

    def testDefaultsAreNotCalled(self) -> None:
        """
        A record holding default values is still falsy.
        """
        record = ArgumentRecord(("foo", "bar"))
        self.assertFalse(record)
        self.assertEqual(len(record), 2)

    def testStringValuesRejected(self) -> None:
        with self.assertRaises(TypeError):
            ArgumentRecord("abc")
        with self.assertRaises(TypeError):
            ArgumentRecord(3)

    def testNonStringElementsRejected(self) -> None:
        with self.assertRaises(TypeError):
            ArgumentRecord(["a", 1])
        with self.assertRaises(TypeError):
            ArgumentRecord((None,))
        self.assertEqual(ArgumentRecord(iter(["a", "b"])).values, ("a", "b"))

    def testImmutable(self) -> None:
        record = ArgumentRecord(("a",))
        with self.assertRaises(AttributeError):
            record.called = True
        with self.assertRaises(AttributeError):
            record._values = ()

    def testEquality(self) -> None:
        self.assertEqual(ArgumentRecord(["a"], called=True), ArgumentRecord(("a",), called=True))
        self.assertNotEqual(ArgumentRecord(["a"], called=True), ArgumentRecord(["a"]))
        self.assertEqual(len({ArgumentRecord(), ArgumentRecord()}), 1)

    def testRepr(self) -> None:
        self.assertEqual(
            repr(ArgumentRecord(("a",), called=True)),
            "argument-record(values=('a',), env=None, called=True)"
        )


class ArgumentsTest(TestCase):
    """
    Test suite for `Arguments`.
    """

    def setUp(self) -> None:
        self.arguments = Arguments({
            "init": ArgumentRecord(("demo",), env="/home", called=True),
            "--list": ArgumentRecord(("foo", "bar")),
        })

    def testGet(self) -> None:
        self.assertEqual(self.arguments.get("init").value, "demo")
        self.assertEqual(self.arguments.get("--list").values, ("foo", "bar"))

    def testGetUnknownNeverRaises(self) -> None:
        record = self.arguments.get("missing")
        self.assertEqual(record, ArgumentRecord())

    def testCalled(self) -> None:
        self.assertTrue(self.arguments.called("init"))
        # Present only through its default.
        self.assertFalse(self.arguments.called("--list"))
        self.assertFalse(self.arguments.called("missing"))

    def testMapping(self) -> None:
        self.assertIn("--list", self.arguments)
        self.assertNotIn("missing", self.arguments)
        self.assertEqual(list(self.arguments), ["init", "--list"])
        self.assertEqual(len(self.arguments), 2)

    def testRecordsDetachedFromInput(self) -> None:
        records = {"init": ArgumentRecord(called=True)}
        arguments = Arguments(records)
        records.clear()
        self.assertTrue(arguments.called("init"))

    def testInvoke(self) -> None:
        arguments = Arguments(action=lambda: 7)
        self.assertTrue(arguments.has_action())
        self.assertEqual(arguments.invoke(), 7)

    def testInvokeWithoutAction(self) -> None:
        self.assertFalse(self.arguments.has_action())
        with self.assertRaises(MissingActionError) as context:
            self.arguments.invoke()
        self.assertEqual(context.exception.options["code"], FaultCode.MISSING_ACTION)
        self.assertEqual(context.exception.options["title"], "no function to invoke")

    def testBadConstruction(self) -> None:
        with self.assertRaises(TypeError):
            Arguments([("init", ArgumentRecord())])
        with self.assertRaises(TypeError):
            Arguments(action="not callable")

    def testShow(self) -> None:
        file = io.StringIO()
        self.arguments.show(console=Console(file=file, width=100))
        output = file.getvalue()
        self.assertIn("parsed arguments", output)
        self.assertIn("init", output)
        self.assertIn("foo bar", output)
        self.assertIn("/home", output)


if __name__ == "__main__":
    unittest.main()
