"""
Signal handling for the sampler process.

SIGINT and SIGTERM are both treated as a termination request. The handler
only records the request; the sampling loop notices it at the top of its next
iteration and emits the report from normal (non-interrupt) context.
"""

import logging
import signal
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalHandler:
    """
    Installs termination handlers and restores the previous ones afterwards.
    """

    def __init__(self, on_termination: Callable[[], None]):
        self.on_termination = on_termination
        self.received_signal: Optional[int] = None
        self._original_handlers = {}
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install the termination handler for SIGINT and SIGTERM."""
        for signum in TERMINATION_SIGNALS:
            self._original_handlers[signum] = signal.signal(signum, self._handle_signal)
        self._signal_handlers_set = True
        logger.debug("Termination signal handlers installed")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            for signum, handler in self._original_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
            logger.debug("Signal handlers restored")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._original_handlers.clear()
            self._signal_handlers_set = False

    def _handle_signal(self, signum: int, frame: Any) -> None:
        # Runs in interrupt context: record and return, nothing else.
        self.received_signal = signum
        self.on_termination()

    def __enter__(self) -> "SignalHandler":
        self.setup_signal_handlers()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup_signal_handlers()
