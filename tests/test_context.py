import io
import unittest
from unittest.mock import MagicMock, patch

from aia.ai.context import PIPED_INPUT_LIMIT, Context, build_context


def tty_stdin():
    stdin = MagicMock()
    stdin.isatty.return_value = True
    return stdin


class TestBuildContext(unittest.TestCase):
    """Tests for the startup context snapshot."""

    @patch("os.listdir", return_value=["src", "README.md", ".git"])
    @patch("os.getcwd", return_value="/home/user/project")
    def test_lists_cwd_entries(self, mock_getcwd, mock_listdir):
        stdin = tty_stdin()
        context = build_context(stdin)

        mock_listdir.assert_called_once_with("/home/user/project")
        self.assertEqual(context.cwd, "/home/user/project")
        self.assertEqual(context.entries, (".git", "README.md", "src"))
        self.assertIsNone(context.piped_input)
        stdin.read.assert_not_called()

    @patch("os.listdir", side_effect=PermissionError("denied"))
    @patch("os.getcwd", return_value="/root/secret")
    def test_listing_failure_degrades_to_empty_entries(self, mock_getcwd, mock_listdir):
        with self.assertLogs("aia.ai.context", level="WARNING"):
            context = build_context(tty_stdin())

        self.assertEqual(context.cwd, "/root/secret")
        self.assertEqual(context.entries, ())

    @patch.dict("os.environ", {"PWD": "/gone"})
    @patch("os.listdir", side_effect=FileNotFoundError("missing"))
    @patch("os.getcwd", side_effect=FileNotFoundError("deleted"))
    def test_missing_cwd_does_not_abort(self, mock_getcwd, mock_listdir):
        with self.assertLogs("aia.ai.context", level="WARNING"):
            context = build_context(tty_stdin())

        self.assertEqual(context.cwd, "/gone")
        self.assertEqual(context.entries, ())

    @patch("os.listdir", return_value=[])
    @patch("os.getcwd", return_value="/tmp")
    def test_captures_piped_input(self, mock_getcwd, mock_listdir):
        context = build_context(io.StringIO("error: something broke\n"))
        self.assertEqual(context.piped_input, "error: something broke\n")

    @patch("os.listdir", return_value=[])
    @patch("os.getcwd", return_value="/tmp")
    def test_empty_pipe_means_no_piped_input(self, mock_getcwd, mock_listdir):
        context = build_context(io.StringIO(""))
        self.assertIsNone(context.piped_input)

    @patch("os.listdir", return_value=[])
    @patch("os.getcwd", return_value="/tmp")
    def test_large_piped_input_is_truncated(self, mock_getcwd, mock_listdir):
        context = build_context(io.StringIO("x" * (PIPED_INPUT_LIMIT + 100)))
        self.assertTrue(context.piped_input.startswith("x" * PIPED_INPUT_LIMIT))
        self.assertTrue(context.piped_input.endswith("(piped input truncated)"))

    @patch("os.listdir", return_value=[])
    @patch("os.getcwd", return_value="/tmp")
    def test_binary_piped_input_does_not_abort(self, mock_getcwd, mock_listdir):
        stdin = io.TextIOWrapper(io.BytesIO(b"\xff\xfe binary"), encoding="utf-8")

        context = build_context(stdin)

        self.assertEqual(context.piped_input, "\ufffd\ufffd binary")
        self.assertEqual(context.cwd, "/tmp")

    @patch("os.listdir", return_value=[])
    @patch("os.getcwd", return_value="/tmp")
    def test_unreadable_pipe_is_skipped(self, mock_getcwd, mock_listdir):
        stdin = MagicMock()
        stdin.isatty.return_value = False
        stdin.buffer.read.side_effect = OSError("broken pipe")

        with self.assertLogs("aia.ai.context", level="WARNING"):
            context = build_context(stdin)

        self.assertIsNone(context.piped_input)


class TestContextRender(unittest.TestCase):
    def test_render_without_piped_input(self):
        context = Context(cwd="/work", entries=("a.txt", "b"))
        self.assertEqual(
            context.render(), "Current directory: /work\nFiles in directory: a.txt, b"
        )

    def test_render_with_piped_input(self):
        context = Context(cwd="/work", entries=(), piped_input="hello")
        self.assertEqual(
            context.render(),
            "Current directory: /work\nFiles in directory: \nPiped input:\nhello",
        )

    def test_context_is_immutable(self):
        context = Context(cwd="/work")
        with self.assertRaises(AttributeError):
            context.cwd = "/elsewhere"


if __name__ == "__main__":
    unittest.main()
