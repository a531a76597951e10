from __future__ import annotations

import threading
from typing import Optional

from item_catalog.errors import OperationCancelled


def check_cancelled(cancel: Optional[threading.Event], operation: str) -> None:
    """Raise OperationCancelled if the caller's cancellation event is set."""
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(operation)
