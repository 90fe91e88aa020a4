"""
Logger utility for the Banker's Algorithm Resource Allocator.

Provides console and file logging with verbosity levels.
"""

from typing import List, Optional
from datetime import datetime

from analysis.events import RequestOutcome


class SimulatorLogger:
    """
    Logger for allocator decisions and state dumps.

    Format: "P1 requests [1, 0, 2] - GRANTED/DENIED (reason)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None):
        """
        Initialize logger.

        Args:
            verbose: Enable verbose output
            log_file: Optional file path for logging
        """
        self.verbose = verbose
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Banker's Algorithm Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        # Console output
        print(formatted)

        # File output
        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_request(self, pid: int, request: List[int], outcome: RequestOutcome) -> None:
        """
        Log a one-line summary of a resource request.

        Args:
            pid: Process index
            request: Requested vector
            outcome: Decision returned by the request processor
        """
        status = "GRANTED" if outcome.granted else "DENIED"
        message = f"P{pid} requests {list(request)} - {status}"
        if outcome.reason is not None:
            message += f" ({outcome.reason.value})"
        self.log(message)

    def log_safety(self, is_safe: bool, order: List[int]) -> None:
        """
        Log the result of a safety check.

        Args:
            is_safe: Whether a completion order exists for every process
            order: Completion order found
        """
        sequence = " -> ".join(f"P{pid}" for pid in order) or "none"
        status = "SAFE" if is_safe else "UNSAFE"
        self.log(f"Safety check: {status} (sequence: {sequence})")

    def log_trace(self, trace_str: str) -> None:
        """
        Log a rendered trace. Only shown in verbose mode.

        Args:
            trace_str: Formatted trace
        """
        if self.verbose:
            self.log(trace_str, "debug")

    def log_state(self, state_str: str) -> None:
        """
        Log a system state dump.

        Args:
            state_str: Formatted system state
        """
        self.log(state_str)

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
