"""
Tests for chainsession.orchestration.error_sink
=================================================

The reported line is the error's ``reason`` when set, else its text.
"""

from chainsession.core.exceptions import ChainError, ResolutionError
from chainsession.orchestration.error_sink import (
    CollectingErrorSink,
    ErrorSink,
    LoggingErrorSink,
    failure_line,
    report,
)


class TestFailureLine:

    def test_reason_preferred(self) -> None:
        assert failure_line(ChainError("tx failed", reason="revert")) == "revert"

    def test_message_without_reason(self) -> None:
        assert failure_line(ResolutionError("no such instance", target_id="x")) == (
            "no such instance"
        )

    def test_empty_error_uses_type_name(self) -> None:
        assert failure_line(RuntimeError()) == "RuntimeError"

    def test_foreign_reason_attribute(self) -> None:
        class ProviderError(Exception):
            reason = "nonce too low"

        assert failure_line(ProviderError("rpc")) == "nonce too low"


class TestSinks:

    def test_collecting_sink(self) -> None:
        sink = CollectingErrorSink()
        line = report(sink, ChainError("tx failed", reason="revert"))

        assert line == "revert"
        assert sink.lines == ["revert"]
        assert sink.visible
        assert sink.show_count == 1

        sink.clear()
        assert sink.lines == []
        assert not sink.visible

    def test_logging_sink(self) -> None:
        sink = LoggingErrorSink()
        assert isinstance(sink, ErrorSink)
        assert report(sink, ValueError("bad")) == "bad"
        assert sink.show() is None
