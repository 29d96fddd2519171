"""
End-to-end tests for the command-line runner.
"""

import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr

from cli import main, load_program

QUINE = "109,1,204,-1,1001,100,1,100,1008,100,16,101,1006,101,0,99"


class TestLoadProgram(unittest.TestCase):
    def test_commas_and_whitespace(self):
        self.assertEqual(load_program("1,9,10\n3, 2 ,-3\n"), [1, 9, 10, 3, 2, -3])

    def test_empty(self):
        self.assertEqual(load_program("\n"), [])

    def test_bad_token(self):
        with self.assertRaises(ValueError):
            load_program("1,2,x")


class TestMain(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _program(self, text: str) -> str:
        path = os.path.join(self._tmp.name, "prog.txt")
        with open(path, "w") as f:
            f.write(text)
        return path

    def _main(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_quine(self):
        code, out, _ = self._main(self._program(QUINE + "\n"))
        self.assertEqual(code, 0)
        self.assertEqual(out.split(), QUINE.split(","))

    def test_inputs(self):
        code, out, _ = self._main(self._program("3,0,4,0,99"), "-i", "5")
        self.assertEqual(code, 0)
        self.assertEqual(out, "5\n")

    def test_repeated_inputs(self):
        path = self._program("3,0,3,1,1,0,1,0,4,0,99")
        code, out, _ = self._main(path, "-i", "20", "--input", "-3")
        self.assertEqual(code, 0)
        self.assertEqual(out, "17\n")

    def test_no_prompt_fails_cleanly(self):
        code, out, err = self._main(self._program("3,0,99"), "--no-prompt")
        self.assertEqual(code, 1)
        self.assertIn("Error: No input available", err)

    def test_unknown_opcode(self):
        code, _, err = self._main(self._program("1,0,0,0,42"))
        self.assertEqual(code, 1)
        self.assertIn("Unknown opcode 42 at address 4", err)

    def test_max_steps(self):
        code, out, _ = self._main(self._program("1105,1,0"), "--max-steps", "5")
        self.assertEqual(code, 0)
        self.assertIn("Stopped after 5 steps at pointer 0.", out)

    def test_max_steps_rejected_with_debug(self):
        path = self._program("1105,1,0")
        with self.assertRaises(SystemExit) as ctx:
            self._main(path, "--debug", "--max-steps", "3")
        self.assertEqual(ctx.exception.code, 2)

    def test_disasm(self):
        code, out, _ = self._main(self._program("1002,4,3,4,33"), "--disasm")
        self.assertEqual(code, 0)
        self.assertIn("MUL [4], 3, [4]", out)
        self.assertIn("DATA 33", out)

    def test_missing_file(self):
        code, _, err = self._main(os.path.join(self._tmp.name, "nope.txt"))
        self.assertEqual(code, 1)
        self.assertIn("Error loading", err)

    def test_bad_program_text(self):
        code, _, err = self._main(self._program("1,2,three"))
        self.assertEqual(code, 1)
        self.assertIn("Not an integer: 'three'", err)


if __name__ == "__main__":
    unittest.main()
