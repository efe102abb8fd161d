"""Tests for run log capture and message formatting."""
from __future__ import annotations

import logging

from opencode_auto_update.update.report import (
    MAX_SUMMARY_CHARS,
    RunLogCollector,
    format_update_message,
    limit_lines,
    summarize_message,
)


class TestLimitLines:
    def test_short_list_is_unchanged(self) -> None:
        assert limit_lines(["a", "b"], 3) == ["a", "b"]

    def test_overflow_is_counted(self) -> None:
        assert limit_lines(["a", "b", "c", "d"], 2) == ["a", "b", "... (2 more lines)"]

    def test_exact_limit_is_unchanged(self) -> None:
        assert limit_lines(["a", "b"], 2) == ["a", "b"]


class TestFormatUpdateMessage:
    def test_logs_only(self) -> None:
        message = format_update_message(["Updated a"], [])
        assert message == "Auto-update logs\n\nUpdated a"

    def test_no_output_placeholder(self) -> None:
        message = format_update_message([], [])
        assert message == "Auto-update logs\n\nNo update output recorded."

    def test_errors_section(self) -> None:
        message = format_update_message(["Updated a"], ["Failed b"])
        assert message.endswith("Updated a\n\nErrors:\nFailed b")

    def test_logs_are_capped(self) -> None:
        logs = [f"line {i}" for i in range(50)]
        message = format_update_message(logs, [])
        assert "line 39" in message
        assert "line 40" not in message
        assert "... (10 more lines)" in message


class TestSummarizeMessage:
    def test_joins_first_four_non_empty_lines(self) -> None:
        message = "Auto-update logs\n\nA\nB\nC\nD"
        assert summarize_message(message) == "Auto-update logs | A | B | C"

    def test_long_summary_is_truncated(self) -> None:
        summary = summarize_message("x" * 500)
        assert len(summary) == MAX_SUMMARY_CHARS
        assert summary.endswith("...")

    def test_blank_message(self) -> None:
        assert summarize_message("\n \n") == ""


class TestRunLogCollector:
    def test_collects_info_and_warnings_separately(self) -> None:
        log = logging.getLogger("opencode_auto_update.test_report")
        with RunLogCollector() as collector:
            log.info("Updated %s", "a")
            log.warning("Failed %s", "b")
            log.error("Broken")
        assert collector.logs == ["Updated a"]
        assert collector.errors == ["Failed b", "Broken"]

    def test_debug_records_are_ignored(self) -> None:
        log = logging.getLogger("opencode_auto_update.test_report")
        package = logging.getLogger("opencode_auto_update")
        previous = package.level
        package.setLevel(logging.DEBUG)
        try:
            with RunLogCollector() as collector:
                log.debug("noise")
        finally:
            package.setLevel(previous)
        assert collector.logs == []

    def test_detaches_and_restores_level_on_exit(self) -> None:
        package = logging.getLogger("opencode_auto_update")
        previous = package.level
        package.setLevel(logging.WARNING)
        try:
            with RunLogCollector() as collector:
                assert package.level == logging.INFO
            assert collector not in package.handlers
            assert package.level == logging.WARNING
        finally:
            package.setLevel(previous)

    def test_records_outside_package_are_ignored(self) -> None:
        with RunLogCollector() as collector:
            logging.getLogger("somewhere.else").warning("unrelated")
        assert collector.errors == []

    def test_records_stay_out_of_host_handlers(self, caplog) -> None:
        log = logging.getLogger("opencode_auto_update.test_report")
        with caplog.at_level(logging.INFO):
            with RunLogCollector() as collector:
                log.info("Updating quietly")
        assert collector.logs == ["Updating quietly"]
        assert "Updating quietly" not in caplog.text

    def test_propagate_forwards_to_host_handlers(self, caplog) -> None:
        log = logging.getLogger("opencode_auto_update.test_report")
        with caplog.at_level(logging.INFO):
            with RunLogCollector(propagate=True) as collector:
                log.info("Updating loudly")
        assert collector.logs == ["Updating loudly"]
        assert "Updating loudly" in caplog.text

    def test_propagation_is_restored_on_exit(self) -> None:
        package = logging.getLogger("opencode_auto_update")
        with RunLogCollector():
            assert package.propagate is False
        assert package.propagate is True
