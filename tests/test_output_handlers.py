"""Tests for output handler implementations."""

from colorama import Fore

from pygit_workflow import BufferedOutputHandler, ConsoleOutputHandler, NullOutputHandler
from pygit_workflow.output import styled


class RecordingHandler(BufferedOutputHandler):
    """Target that keeps whatever is replayed onto it."""


class TestStyled:
    def test_info_is_plain(self):
        assert styled("info", "hello", indent=1) == "  hello"

    def test_levels_are_colored(self):
        assert styled("error", "boom").startswith(Fore.RED)
        assert styled("success", "ok").startswith(Fore.GREEN)

    def test_empty_message_stays_empty(self):
        assert styled("warning", "") == ""


class TestNullOutputHandler:
    def test_accepts_everything(self, capsys):
        handler = NullOutputHandler()
        handler.info("test", indent=2)
        handler.success("test")
        handler.warning("test", indent=1)
        handler.error("test")
        handler.section("title")
        handler.debug("test")
        assert capsys.readouterr().out == ""


class TestConsoleOutputHandler:
    def test_info_prints(self, capsys):
        ConsoleOutputHandler().info("hello")
        assert "hello" in capsys.readouterr().out

    def test_info_with_indent(self, capsys):
        ConsoleOutputHandler().info("hello", indent=2)
        assert capsys.readouterr().out.startswith("    hello")

    def test_error_is_red(self, capsys):
        ConsoleOutputHandler().error("broken")
        assert Fore.RED in capsys.readouterr().out

    def test_section_prints(self, capsys):
        ConsoleOutputHandler().section("Syncing branches")
        out = capsys.readouterr().out
        assert "Syncing branches" in out
        assert "-" * 50 in out

    def test_debug_only_when_verbose(self, capsys):
        ConsoleOutputHandler(verbose=False).debug("hidden")
        assert capsys.readouterr().out == ""
        ConsoleOutputHandler(verbose=True).debug("shown")
        assert "[DEBUG] shown" in capsys.readouterr().out


class TestBufferedOutputHandler:
    def test_records_level_and_indent(self):
        handler = BufferedOutputHandler()
        handler.success("ok", indent=1)
        handler.error("err")
        assert handler.records == [("success", "ok", 1), ("error", "err", 0)]

    def test_messages_are_indented(self):
        handler = BufferedOutputHandler()
        handler.info("hello", indent=2)
        assert handler.messages == ["    hello"]

    def test_flush_replays_levels(self):
        handler = BufferedOutputHandler()
        handler.section("Pruning")
        handler.warning("careful", indent=1)
        handler.debug("details")
        target = RecordingHandler()

        handler.flush_to(target)

        assert target.records == [
            ("section", "Pruning", 0),
            ("warning", "careful", 1),
            ("debug", "details", 0),
        ]
        assert handler.records == []

    def test_flush_to_console(self, capsys):
        handler = BufferedOutputHandler()
        handler.info("line1")
        handler.info("line2")
        handler.flush_to(ConsoleOutputHandler())
        out = capsys.readouterr().out
        assert "line1" in out
        assert "line2" in out
