"""
Logger utility for the Banker's Allocator simulator.

Provides step-by-step logging with verbosity levels.
"""

from typing import List, Optional
from datetime import datetime

from models.decision import RequestOutcome, SafetyResult


class SimulatorLogger:
    """
    Logger for allocator decisions.

    Format: "Step X: PY requests [a, b, c] - GRANTED/WAIT/DENIED (reason)"
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
            self.file_handle.write(f"Banker's Allocator Log - {timestamp}\n")
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

        print(formatted)

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

    def log_step(self, step: int, message: str) -> None:
        """Log a simulation step message."""
        self.log(f"Step {step}: {message}")

    def log_request(self, step: int, outcome: RequestOutcome, retry: bool = False) -> None:
        """
        Log a resource request decision.

        Args:
            step: Current simulation step
            outcome: Decision returned by the allocator
            retry: True when this is a retry of a pending request
        """
        action = "retries pending request" if retry else "requests"
        message = f"P{outcome.pid} {action} {outcome.request} - {outcome.status.value} ({outcome.reason})"
        self.log_step(step, message)

    def log_safety_check(self, step: int, result: SafetyResult) -> None:
        """
        Log the result of a safety check.

        Args:
            step: Current simulation step
            result: Safety algorithm result
        """
        self.log_step(step, f"Safety check - {result}")

    def log_release(self, step: int, pid: int, released: List[int]) -> None:
        """
        Log process termination.

        Args:
            step: Current simulation step
            pid: Terminated process
            released: Units returned per resource type
        """
        held = ", ".join(f"R{r}[{amount}]" for r, amount in enumerate(released) if amount > 0)
        self.log_step(step, f"P{pid} - TERMINATED (released: {held or 'none'})")

    def log_relinquish(self, step: int, pid: int, amounts: List[int]) -> None:
        """
        Log a partial release by a live process.

        Args:
            step: Current simulation step
            pid: Process returning resources
            amounts: Units returned per resource type
        """
        self.log_step(step, f"P{pid} relinquishes {amounts}")

    def log_state(self, step: int, state_str: str) -> None:
        """
        Log allocator state snapshot.

        Args:
            step: Current simulation step
            state_str: Formatted allocator state
        """
        if self.verbose:
            self.log_step(step, f"Allocator State:\n{state_str}")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
