"""Buffered StatsD client flushing metric lines over UDP"""
import abc
import asyncio
import random
import threading
from collections import deque
from typing import List, Optional
from config import Config
from logging_config import get_logger


logger = get_logger(__name__)


class BaseMetricsClient(abc.ABC):
    """Abstract transport for metric operations.

    Metric methods are fire-and-forget: they never raise on transport
    problems and never block on the network.
    """

    @abc.abstractmethod
    def count(self, key: str, value: int, sample_rate: float = 1.0) -> None:
        """Increment a counter"""
        pass

    @abc.abstractmethod
    def gauge(self, key: str, value: int) -> None:
        """Set a gauge to an absolute value"""
        pass

    @abc.abstractmethod
    def gauge_shift(self, key: str, delta: int) -> None:
        """Shift a gauge relative to its last value"""
        pass

    @abc.abstractmethod
    def timing(self, key: str, duration: int, sample_rate: float = 1.0) -> None:
        """Record a timing sample"""
        pass

    @abc.abstractmethod
    def set(self, key: str, value: int) -> None:
        """Record a value in a set"""
        pass

    async def start(self) -> None:
        """Initialize the client"""
        pass

    async def stop(self) -> None:
        """Flush and release resources"""
        pass


def format_sample_rate(sample_rate: float) -> str:
    """StatsD sample rate suffix, empty when every event is sent"""
    if 0 < sample_rate < 1:
        return f"|@{sample_rate:g}"
    return ""


def format_count(key: str, value: int, sample_rate: float = 1.0) -> str:
    return f"{key}:{value}|c{format_sample_rate(sample_rate)}"


def format_gauge(key: str, value: int) -> List[str]:
    # a leading sign is read as a shift, so reset to zero first
    if value < 0:
        return [f"{key}:0|g", f"{key}:{value}|g"]
    return [f"{key}:{value}|g"]


def format_gauge_shift(key: str, delta: int) -> str:
    return f"{key}:{delta:+d}|g"


def format_timing(key: str, duration: int, sample_rate: float = 1.0) -> str:
    return f"{key}:{duration}|ms{format_sample_rate(sample_rate)}"


def format_set(key: str, value: int) -> str:
    return f"{key}:{value}|s"


class _DatagramProtocol(asyncio.DatagramProtocol):
    """Swallows asynchronous socket errors such as ICMP port unreachable"""

    def error_received(self, exc):
        logger.debug("StatsD socket error", error=str(exc), event_type="statsd_socket_error")


class BufferedStatsDClient(BaseMetricsClient):
    """StatsD client buffering lines in memory and flushing them on an interval"""

    def __init__(self, config: Config):
        self.host = config.statsd_host
        self.port = config.statsd_port
        self.flush_interval = config.flush_interval
        self.max_packet_size = config.statsd_max_packet_size
        self.max_buffer_lines = config.statsd_max_buffer_lines

        # Lines are appended from request handlers, drained by the flush task
        self._buffer = deque()
        self._lock = threading.Lock()

        self._transport: Optional[asyncio.DatagramTransport] = None
        self._flush_task: Optional[asyncio.Task] = None
        self.sent_packets = 0
        self.dropped_lines = 0

    def count(self, key: str, value: int, sample_rate: float = 1.0) -> None:
        if self._sampled(sample_rate):
            self._enqueue(format_count(key, value, sample_rate))

    def gauge(self, key: str, value: int) -> None:
        self._enqueue(*format_gauge(key, value))

    def gauge_shift(self, key: str, delta: int) -> None:
        self._enqueue(format_gauge_shift(key, delta))

    def timing(self, key: str, duration: int, sample_rate: float = 1.0) -> None:
        if self._sampled(sample_rate):
            self._enqueue(format_timing(key, duration, sample_rate))

    def set(self, key: str, value: int) -> None:
        self._enqueue(format_set(key, value))

    def _sampled(self, sample_rate: float) -> bool:
        if 0 < sample_rate < 1:
            return random.random() < sample_rate
        return True

    def _enqueue(self, *lines: str) -> None:
        with self._lock:
            self._buffer.extend(lines)
            overflow = len(self._buffer) - self.max_buffer_lines
            if overflow > 0:
                for _ in range(overflow):
                    self._buffer.popleft()
                self.dropped_lines += overflow

        if overflow > 0:
            logger.warning(
                "StatsD buffer overflow, dropped oldest lines",
                dropped_count=overflow,
                buffer_size=self.max_buffer_lines,
                event_type="statsd_buffer_overflow"
            )

    def pending(self) -> int:
        """Number of lines waiting for the next flush"""
        with self._lock:
            return len(self._buffer)

    def _drain(self) -> List[str]:
        with self._lock:
            lines = list(self._buffer)
            self._buffer.clear()
        return lines

    def build_packets(self, lines: List[str]) -> List[bytes]:
        """Pack newline-joined lines into datagrams no larger than the packet size"""
        packets = []
        current = b""
        for line in lines:
            encoded = line.encode("utf-8")
            if len(encoded) > self.max_packet_size:
                logger.warning(
                    "StatsD line exceeds packet size, dropped",
                    line_size=len(encoded),
                    max_packet_size=self.max_packet_size,
                    event_type="statsd_line_dropped"
                )
                continue
            if not current:
                current = encoded
            elif len(current) + 1 + len(encoded) <= self.max_packet_size:
                current += b"\n" + encoded
            else:
                packets.append(current)
                current = encoded
        if current:
            packets.append(current)
        return packets

    async def start(self) -> None:
        """Open the UDP endpoint and start the periodic flush task"""
        if self._transport is None:
            loop = asyncio.get_running_loop()
            self._transport, _ = await loop.create_datagram_endpoint(
                _DatagramProtocol,
                remote_addr=(self.host, self.port)
            )
        if self._flush_task is None:
            self._flush_task = asyncio.create_task(self._flush_loop())
            logger.info(
                "StatsD client started",
                statsd_host=self.host,
                statsd_port=self.port,
                flush_interval=self.flush_interval,
                event_type="statsd_client_start"
            )

    async def stop(self) -> None:
        """Stop the flush task and send whatever is still buffered"""
        if self._flush_task:
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
            self._flush_task = None

        self.flush()

        if self._transport is not None:
            self._transport.close()
            self._transport = None

        logger.info("StatsD client stopped", sent_packets=self.sent_packets, event_type="statsd_client_stop")

    async def _flush_loop(self):
        """Background loop flushing the buffer every interval"""
        while True:
            try:
                await asyncio.sleep(self.flush_interval)
                self.flush()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Flush loop error", error=str(e), event_type="statsd_flush_error", exc_info=True)

    def flush(self) -> int:
        """Send buffered lines, returns the number of packets sent"""
        lines = self._drain()
        if not lines:
            return 0

        if self._transport is None:
            logger.warning("StatsD client not started, discarding lines", line_count=len(lines), event_type="statsd_not_started")
            return 0

        sent = 0
        for packet in self.build_packets(lines):
            try:
                self._transport.sendto(packet)
                sent += 1
            except OSError as e:
                # delivery is not guaranteed, the caller never sees this
                logger.warning("StatsD send failed", error=str(e), packet_size=len(packet), event_type="statsd_send_failed")

        self.sent_packets += sent
        logger.debug("StatsD buffer flushed", line_count=len(lines), packet_count=sent, event_type="statsd_flush")
        return sent
