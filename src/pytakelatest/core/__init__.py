"""
Core types for pytakelatest.

This module contains the fundamental types used throughout the package:
- AbortReason: Why a cancellable future was aborted
- AbortedError: The recognizable "aborted" failure
- Abortable: Capability protocol for cancellable suspension points
- CancellableFuture: Standard Abortable implementation over asyncio tasks
- DriverStatus: Lifecycle of one Driver run
- CURRENT_DRIVER: Task-local access to the running Driver
"""

from pytakelatest.core.abort_reason import AbortReason
from pytakelatest.core.aborted_error import AbortedError
from pytakelatest.core.cancellable import (
    Abortable,
    AbortHook,
    CancellableFuture,
    is_abortable,
)
from pytakelatest.core.context import CURRENT_DRIVER, get_current_driver
from pytakelatest.core.status import DriverStatus

__all__ = [
    "AbortReason",
    "AbortedError",
    "Abortable",
    "AbortHook",
    "CancellableFuture",
    "is_abortable",
    "DriverStatus",
    "CURRENT_DRIVER",
    "get_current_driver",
]
