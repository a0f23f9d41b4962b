"""Background computation thread for pipeline updates."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QThread, Signal

logger = logging.getLogger(__name__)


class ComputationThread(QThread):
    """Runs one pipeline update off the GUI thread.

    ``computation_started`` and ``computation_finished`` bracket every run,
    including failed ones, so the window can drive its progress bar from
    them alone. ``computation_succeeded`` fires only when the function
    returned normally.
    """

    computation_started = Signal()
    computation_finished = Signal()
    computation_succeeded = Signal()
    computation_failed = Signal(str)

    def __init__(
        self,
        function: Optional[Callable[[], Any]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._function = function
        self.result: Any = None

    def set_function(self, function: Callable[[], Any]) -> None:
        self._function = function

    def run(self) -> None:
        self.computation_started.emit()
        try:
            if self._function is None:
                raise RuntimeError("No computation has been set")
            self.result = self._function()
        except Exception as exc:
            logger.exception("Background computation failed")
            self.result = None
            self.computation_failed.emit(str(exc))
        else:
            self.computation_succeeded.emit()
        finally:
            self.computation_finished.emit()
