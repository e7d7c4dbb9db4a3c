from inspect import cleandoc
import subprocess
import unittest
from unittest.mock import Mock, patch

from pgenvlib.plumbing import common
from pgenvlib.plumbing.common import (command, generate_secret, Password, Result, SECRET_ALPHABET,
                                      State)

from .plumbing import (collect_all, collect_pair, collect_unchanged, created, default, success,
                       success_value, unchanged)


class TestResult(unittest.TestCase):

    maxDiff = None

    def test_state_default(self):
        self.assertEqual(default().state, State.unchanged)

    def test_state_unchanged(self):
        self.assertEqual(unchanged().state, State.unchanged)

    def test_state_success(self):
        self.assertEqual(success().state, State.success)

    def test_state_parts_unchanged(self):
        self.assertEqual(collect_unchanged().state, State.unchanged)

    def test_state_parts_success(self):
        self.assertEqual(collect_pair().state, State.success)

    def test_state_parts_created(self):
        self.assertEqual(collect_all().state, State.created)

    def test_value_unset(self):
        with self.assertRaises(ValueError):
            success().value

    def test_value_set(self):
        self.assertEqual(success_value("test").value, "test")

    def test_value_collected(self):
        self.assertEqual(collect_all().value, "test")

    def test_caller_inspect(self):
        self.assertEqual(default().caller, "tests.plumbing:default")

    def test_caller_custom(self):
        self.assertEqual(Result(caller=default).caller, "tests.plumbing:default")

    def test_truthy_unchanged(self):
        self.assertFalse(unchanged())

    def test_truthy_success(self):
        self.assertTrue(success())

    def test_truthy_created(self):
        self.assertTrue(created())

    def test_collect(self):
        result = collect_pair()
        self.assertEqual(result.parts[0].caller, "tests.plumbing:unchanged")
        self.assertEqual(result.parts[1].caller, "tests.plumbing:success")

    def test_str(self):
        self.assertEqual(str(collect_all()), cleandoc("""
        tests.plumbing:collect_all: created 'test'
            tests.plumbing:unchanged: unchanged
            tests.plumbing:success: success
            tests.plumbing:success_value: success 'test'
            tests.plumbing:created: created
        """))


class TestPassword(unittest.TestCase):

    def test_str(self):
        self.assertEqual(str(Password("test")), "test")

    def test_repr(self):
        self.assertEqual(repr(Password("test")), "<Password: '***'>")

    def test_template_str(self):
        self.assertEqual(str(Password("test", "prefix:{}")), "prefix:test")

    def test_template_repr(self):
        self.assertEqual(repr(Password("test", "prefix:{}")), "<Password: 'prefix:***'>")

    def test_template_wrap(self):
        self.assertEqual(str(Password("test").wrap("prefix:{}")), "prefix:test")

    def test_new(self):
        passwd = Password.new()
        self.assertEqual(len(str(passwd)), 20)
        self.assertNotIn(str(passwd), repr(passwd))

    def test_new_unique(self):
        self.assertNotEqual(str(Password.new()), str(Password.new()))


class TestSecret(unittest.TestCase):

    def test_length(self):
        for length in (17, 20, 64):
            self.assertEqual(len(generate_secret(length)), length)

    def test_alphabet(self):
        for _ in range(50):
            self.assertTrue(set(generate_secret()) <= set(SECRET_ALPHABET))

    def test_low_entropy(self):
        with self.assertRaises(ValueError):
            generate_secret(16)

    def test_filter_then_truncate(self):
        # Base64 of 0xfb 0xff 0xbf is "+/+/", so all unsafe characters are dropped.
        source = iter([b"\xfb\xff\xbf" * 7, b"abcdefghijklmnopqrst"])
        secret = generate_secret(20, lambda n: next(source))
        self.assertEqual(secret, "YWJjZGVmZ2hpamtsbW5v")

    def test_redraws_until_long_enough(self):
        calls = []

        def randbytes(n):
            calls.append(n)
            return b"\xfb\xff\xbf" * 6 + b"ab" if len(calls) == 1 else b"abcdefghijklmnopqrst"

        secret = generate_secret(20, randbytes)
        self.assertEqual(len(secret), 20)
        self.assertEqual(len(calls), 2)


class TestCommand(unittest.TestCase):

    def test_success(self):
        self.assertEqual(command(["true"]).returncode, 0)

    @patch("{}.LOG".format(common.__spec__.name))
    def test_logged(self, log: Mock):
        command(["true"])
        log.debug.assert_called_once_with("Exec: %r", ["true"])

    def test_failure(self):
        with self.assertRaises(subprocess.CalledProcessError):
            command(["false"])

    def test_timeout(self):
        with self.assertRaises(subprocess.TimeoutExpired):
            command(["sleep", "5"], timeout=0.1)


if __name__ == "__main__":
    unittest.main()
