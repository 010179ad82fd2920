import unittest
from unittest.mock import MagicMock, call, patch

from aia.ai.dispatcher import (
    DECISION_PROMPT,
    FOLLOW_UP_PROMPT,
    CommandDispatcher,
    Execute,
    FollowUp,
    PendingCommand,
    Quit,
)
from aia.ai.shell import ExecutionFailed, ExecutionResult


class TestDecide(unittest.TestCase):
    """Tests for reading the user's execute/follow-up/quit decision."""

    def setUp(self):
        self.console = MagicMock()
        self.dispatcher = CommandDispatcher(self.console)
        self.pending = PendingCommand("ls -la")

    @patch("builtins.input", return_value="e")
    def test_execute(self, mock_input):
        self.assertEqual(self.dispatcher.decide(self.pending), Execute())
        mock_input.assert_called_once_with(DECISION_PROMPT)

    @patch("builtins.input", return_value=" Execute ")
    def test_full_word_is_accepted(self, mock_input):
        self.assertEqual(self.dispatcher.decide(self.pending), Execute())

    @patch("builtins.input", return_value="q")
    def test_quit(self, mock_input):
        self.assertEqual(self.dispatcher.decide(self.pending), Quit())

    @patch("builtins.input", side_effect=["f", "only show hidden files"])
    def test_follow_up_carries_text(self, mock_input):
        decision = self.dispatcher.decide(self.pending)

        self.assertEqual(decision, FollowUp("only show hidden files"))
        mock_input.assert_has_calls([call(DECISION_PROMPT), call(FOLLOW_UP_PROMPT)])

    @patch("builtins.input", side_effect=["f", "   ", "q"])
    def test_empty_follow_up_asks_again(self, mock_input):
        self.assertEqual(self.dispatcher.decide(self.pending), Quit())
        self.assertEqual(mock_input.call_count, 3)

    @patch("builtins.input", side_effect=["maybe", "", "yes please", "e"])
    def test_unrecognized_decision_reprompts(self, mock_input):
        self.assertEqual(self.dispatcher.decide(self.pending), Execute())
        self.assertEqual(mock_input.call_args_list, [call(DECISION_PROMPT)] * 4)

    @patch("builtins.input", side_effect=EOFError)
    def test_end_of_input_quits(self, mock_input):
        self.assertEqual(self.dispatcher.decide(self.pending), Quit())

    @patch("builtins.input", side_effect=KeyboardInterrupt)
    def test_interrupt_quits(self, mock_input):
        self.assertEqual(self.dispatcher.decide(self.pending), Quit())

    @patch("builtins.input", return_value="q")
    def test_command_is_shown(self, mock_input):
        self.dispatcher.decide(self.pending)
        shown = self.console.print.call_args_list[0].args[0]
        self.assertIn("ls -la", shown)


class TestExecute(unittest.TestCase):
    """Tests for running an approved command."""

    def setUp(self):
        self.console = MagicMock()
        self.executor = MagicMock()
        self.dispatcher = CommandDispatcher(
            self.console, shell="zsh", command_timeout=30, executor=self.executor
        )

    def test_runs_command_with_configured_shell(self):
        self.executor.return_value = ExecutionResult("echo hi", 0, stdout="hi\n")

        note = self.dispatcher.execute(PendingCommand("echo hi"))

        self.executor.assert_called_once_with("echo hi", "zsh", 30)
        self.assertIn("`echo hi`", note)
        self.assertIn("Exit status: 0", note)
        self.assertIn("STDOUT:\nhi", note)

    def test_non_zero_exit_is_reported(self):
        self.executor.return_value = ExecutionResult("false", 1, stderr="boom\n")

        note = self.dispatcher.execute(PendingCommand("false"))

        self.assertIn("Exit status: 1", note)
        self.assertIn("STDERR:\nboom", note)
        printed = " ".join(str(c.args[0]) for c in self.console.print.call_args_list)
        self.assertIn("exit status 1", printed)

    def test_execution_failure_is_not_fatal(self):
        self.executor.side_effect = ExecutionFailed("Command timed out after 30 seconds.")

        with self.assertLogs("aia.ai.dispatcher", level="WARNING"):
            note = self.dispatcher.execute(PendingCommand("sleep 100"))

        self.assertIn("sleep 100", note)
        self.assertIn("timed out", note)


if __name__ == "__main__":
    unittest.main()
