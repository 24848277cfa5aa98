"""Unit tests for ResponseCollector with a mocked transport.

Covers token matching across partial reads, the pure time box behaviour of
an empty token, zero timeouts and collect() logging.
"""

import time
from unittest.mock import Mock, patch

import pytest

from firebase_at.core.exceptions import SerialPortError
from firebase_at.core.response_collector import ResponseCollector


def make_transport(*chunks):
    """Transport whose read_available() yields ``chunks`` then ''."""
    transport = Mock()
    transport.read_available.side_effect = list(chunks) + [''] * 1000
    return transport


class TestWaitFor:
    """Test ResponseCollector.wait_for()."""

    def test_token_in_first_read(self):
        """Test token present in the first chunk."""
        collector = ResponseCollector(make_transport("AT\r\n\r\nOK\r\n"), poll_interval=0.001)

        buffer, matched = collector.wait_for("OK", 1000)

        assert matched is True
        assert buffer == "AT\r\n\r\nOK\r\n"

    def test_token_split_across_reads(self):
        """Test token assembled from two partial reads."""
        transport = make_transport("CONNECT\r\n\r\nO", "K\r\n")
        collector = ResponseCollector(transport, poll_interval=0.001)

        buffer, matched = collector.wait_for("OK", 1000)

        assert matched is True
        assert buffer == "CONNECT\r\n\r\nOK\r\n"
        assert transport.read_available.call_count == 2

    def test_stops_reading_after_match(self):
        """Test no further reads once the token is seen."""
        transport = make_transport("OK", "late data")
        collector = ResponseCollector(transport, poll_interval=0.001)

        buffer, matched = collector.wait_for("OK", 1000)

        assert matched is True
        assert buffer == "OK"
        assert transport.read_available.call_count == 1

    def test_timeout_returns_partial_buffer(self):
        """Test timeout keeps everything received so far."""
        collector = ResponseCollector(make_transport("busy p...\r\n"), poll_interval=0.001)

        buffer, matched = collector.wait_for("OK", 20)

        assert matched is False
        assert buffer == "busy p...\r\n"

    def test_timeout_honoured(self):
        """Test a missing token waits roughly the timeout, not forever."""
        collector = ResponseCollector(make_transport(), poll_interval=0.001)

        start = time.monotonic()
        _, matched = collector.wait_for("OK", 30)
        elapsed = time.monotonic() - start

        assert matched is False
        assert 0.025 <= elapsed < 1.0

    def test_empty_token_never_matches(self):
        """Test empty token turns the wait into a time box."""
        collector = ResponseCollector(make_transport("anything"), poll_interval=0.001)

        buffer, matched = collector.wait_for("", 20)

        assert matched is False
        assert buffer == "anything"

    def test_zero_timeout_checks_once(self):
        """Test timeout of zero reads the input exactly once."""
        transport = make_transport("OK")
        collector = ResponseCollector(transport, poll_interval=0.001)

        buffer, matched = collector.wait_for("OK", 0)

        assert matched is True
        assert transport.read_available.call_count == 1

    def test_zero_timeout_without_token(self):
        """Test timeout of zero fails immediately when the token is absent."""
        transport = make_transport("ERR")
        collector = ResponseCollector(transport, poll_interval=0.001)

        buffer, matched = collector.wait_for("OK", 0)

        assert matched is False
        assert buffer == "ERR"
        assert transport.read_available.call_count == 1

    def test_negative_timeout_treated_as_zero(self):
        """Test negative timeout behaves like zero."""
        transport = make_transport()
        collector = ResponseCollector(transport, poll_interval=0.001)

        _, matched = collector.wait_for("OK", -5)

        assert matched is False
        assert transport.read_available.call_count == 1

    def test_sleeps_between_polls(self):
        """Test poll interval is used between reads."""
        transport = make_transport("", "OK")
        collector = ResponseCollector(transport, poll_interval=0.005)

        with patch('firebase_at.core.response_collector.time.sleep') as mock_sleep:
            _, matched = collector.wait_for("OK", 1000)

        assert matched is True
        mock_sleep.assert_called_once_with(0.005)

    def test_transport_error_propagates(self):
        """Test SerialPortError from the transport is not swallowed."""
        transport = Mock()
        transport.read_available.side_effect = SerialPortError("read failed", "/dev/ttyUSB0")
        collector = ResponseCollector(transport)

        with pytest.raises(SerialPortError):
            collector.wait_for("OK", 100)


class TestCollect:
    """Test ResponseCollector.collect()."""

    def test_collect_full_window(self):
        """Test collect with no terminator returns all text in the window."""
        collector = ResponseCollector(
            make_transport("HTTP/1.1 200 OK\r\n", "\r\n", "42"),
            poll_interval=0.001
        )

        raw = collector.collect("", 30)

        assert raw == "HTTP/1.1 200 OK\r\n\r\n42"

    def test_collect_stops_at_terminator(self):
        """Test collect returns early when the terminator is seen."""
        transport = make_transport("HTTP/1.1 200 OK\r\n\r\n1", "CLOSED\r\n", "extra")
        collector = ResponseCollector(transport, poll_interval=0.001)

        raw = collector.collect("CLOSED", 1000)

        assert raw == "HTTP/1.1 200 OK\r\n\r\n1CLOSED\r\n"

    def test_collect_nothing_received(self):
        """Test collect returns '' when the modem stays silent."""
        collector = ResponseCollector(make_transport(), poll_interval=0.001)

        assert collector.collect("", 10) == ""

    def test_collect_logs_summary(self):
        """Test collect reports length and termination to the logger."""
        logger = Mock()
        collector = ResponseCollector(make_transport("abc"), poll_interval=0.001, logger=logger)

        collector.collect("", 10)

        logger.log_collected.assert_called_once_with(length=3, terminator="", terminated=False)
