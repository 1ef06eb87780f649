#!/usr/bin/env python3

"""Progress tracking for long-running ingestion passes."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter
from typing import Any


class ProgressTracker:
    """
    Track and report ingestion progress.

    Counts processed units (DWARF compilation units, PDB streams) and the
    entries inside them (DIEs, type records), times nested operations and
    logs a summary at the end.
    """

    def __init__(self, logger: logging.Logger, entry_label: str = "DIEs"):
        """
        Args:
            logger: Logger receiving progress messages
            entry_label: Plural noun used for counted entries in messages
        """
        self.logger = logger
        self.entry_label = entry_label
        self.start_time = perf_counter()
        self.unit_count = 0
        self.entry_count = 0
        self.skipped_count = 0
        self.operation_stack: list[tuple[str, float]] = []

    @contextmanager
    def track_operation(self, operation_name: str) -> Iterator[None]:
        """
        Time a high-level operation such as parsing symbols or types.

        Args:
            operation_name: Name used in log messages
        """
        start_time = perf_counter()
        self.operation_stack.append((operation_name, start_time))
        self.logger.debug(f"Starting operation: {operation_name}")

        try:
            yield
            elapsed = perf_counter() - start_time
            self.logger.debug(f"Completed operation: {operation_name} in {elapsed:.3f}s")
        except Exception as e:
            elapsed = perf_counter() - start_time
            self.logger.error(f"Failed operation: {operation_name} after {elapsed:.3f}s: {e}")
            raise
        finally:
            self.operation_stack.pop()

    @contextmanager
    def track_unit(self, unit: Any) -> Iterator[None]:
        """
        Time one compilation unit (or any object exposing ``cu_offset``).

        Args:
            unit: Unit being processed
        """
        self.unit_count += 1
        unit_start = perf_counter()
        unit_offset = getattr(unit, "cu_offset", 0)
        initial_entry_count = self.entry_count

        self.logger.debug(f"Processing unit #{self.unit_count} at 0x{unit_offset:x}")

        try:
            yield
        except Exception as e:
            elapsed = perf_counter() - unit_start
            self.logger.error(
                f"Unit #{self.unit_count} failed during {self.get_current_context()} after {elapsed:.3f}s: {e}"
            )
            raise

        elapsed = perf_counter() - unit_start
        processed = self.entry_count - initial_entry_count
        self.logger.debug(
            f"Unit #{self.unit_count} completed in {elapsed:.3f}s "
            f"({processed} {self.entry_label} processed)"
        )

    def count_entry(self) -> None:
        self.entry_count += 1

    def count_skipped(self) -> None:
        self.skipped_count += 1

    def report_summary(self) -> None:
        """Log final processing statistics."""
        total_time = perf_counter() - self.start_time
        rate = self.entry_count / total_time if total_time > 0 else 0

        self.logger.info(
            f"Processing complete: {self.unit_count} units, {self.entry_count} {self.entry_label}, "
            f"{self.skipped_count} duplicates skipped in {total_time:.2f}s "
            f"({rate:.1f} {self.entry_label}/s)"
        )

    def get_current_context(self) -> str:
        """Describe the operation stack, e.g. ``"types -> unit"``."""
        if not self.operation_stack:
            return "idle"
        return " -> ".join(name for name, _ in self.operation_stack)
