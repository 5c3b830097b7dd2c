"""Domain Ports - Abstract Contracts for the Cleaning Pipeline.

This module defines the Port interfaces (abstract contracts) that Adapters must implement,
the Result type used for non-fatal reporting, and the exception taxonomy of the pipeline.
Following Hexagonal Architecture, the Domain Core defines what it needs, not how it's provided.

Data Integrity Impact:
    - Every fatal condition has a dedicated exception type so the CLI can halt before export
    - Recoverable range violations never surface as exceptions; they are resolved through
      the adjudication queue
    - Raw personal identifiers are never included in exception messages

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Adapters (JSON ingester, terminal/replay adjudicators, JSON exporter) implement these ports
    - Domain Core is isolated from input/output channel specifics
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Generic, Optional, TypeVar, Union

import pandas as pd

if TYPE_CHECKING:
    from pressure_sieve.domain.adjudication import AdjudicationQueue
    from pressure_sieve.domain.record_store import RecordStore

T = TypeVar('T')


# ============================================================================
# Result of a non-fatal operation
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation whose failure is reported, not raised.

    The cleaned snapshot is already written when the cleaning report is
    saved, so a failure there is shown to the operator instead of aborting.

    Attributes:
        success: Whether the operation completed
        value: Payload on success
        error: Message on failure
        error_type: Exception class name on failure (e.g. ``ExportError``)
        error_details: Context on failure, e.g. ``{"path": ...}``

    Example:
        ```python
        result = generate_cleaning_report(summary, audit_logger, output_path="report.json")
        if result.is_failure():
            console.print(result.error)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        return cls(True, value)

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Failed result; ``error_type`` defaults to the exception's class name."""
        if isinstance(error, Exception):
            return cls(False, error=str(error), error_type=error_type or type(error).__name__,
                       error_details=error_details or {})
        return cls(False, error=error, error_type=error_type or "CleaningError",
                   error_details=error_details or {})

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success


# ============================================================================
# Exceptions
# ============================================================================

class CleaningError(Exception):
    """Base exception for all pipeline errors.

    Every subclass is fatal for the current run unless stated otherwise.
    """
    pass


class SourceNotFoundError(CleaningError):
    """Raised when the input snapshot cannot be found or read.

    Attributes:
        source: The source identifier that was not found
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class UnsupportedSourceError(CleaningError):
    """Raised when the source format is not supported by the adapter.

    Attributes:
        source: The source identifier that is unsupported
        adapter: The adapter that cannot handle the source
    """

    def __init__(self, message: str, source: Optional[str] = None, adapter: Optional[str] = None):
        super().__init__(message)
        self.source = source
        self.adapter = adapter


class ValidationError(CleaningError):
    """Raised when raw records do not match the input schema.

    Attributes:
        source: The source identifier that failed validation
        details: Mapping of record position to validation messages
    """

    def __init__(self, message: str, source: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.source = source
        self.details = details or {}


class DataIntegrityError(CleaningError):
    """Raised when a post-correction consistency check fails.

    The pipeline aborts and the operator must re-inspect the listed records.

    Attributes:
        check: Name of the failed check (ranges, ordering, bmi, age)
        record_ids: Record IDs violating the check
    """

    def __init__(self, message: str, check: Optional[str] = None, record_ids: Optional[list] = None):
        super().__init__(message)
        self.check = check
        self.record_ids = record_ids or []


class DirectiveRejectedError(CleaningError):
    """Raised when an adjudication directive is not in the accepted vocabulary.

    Interactive front ends catch this and re-prompt; replay front ends and the
    Correction Applier let it propagate.

    Attributes:
        record_index: Index of the record the directive was meant for
    """

    def __init__(self, message: str, record_index: Optional[int] = None):
        super().__init__(message)
        self.record_index = record_index


class AdjudicationIncompleteError(CleaningError):
    """Raised when flagged records are left without a directive.

    Attributes:
        record_ids: Record IDs still pending
    """

    def __init__(self, message: str, record_ids: Optional[list] = None):
        super().__init__(message)
        self.record_ids = record_ids or []


class VocabularyError(CleaningError):
    """Raised for a malformed vocabulary or, in strict mode, a lookup miss.

    Attributes:
        vocabulary: Name of the vocabulary involved
    """

    def __init__(self, message: str, vocabulary: Optional[str] = None):
        super().__init__(message)
        self.vocabulary = vocabulary


class AnonymizationOverflowError(CleaningError):
    """Raised when there are more distinct patients than the token width can encode."""

    def __init__(self, message: str, distinct_count: int = 0, capacity: int = 0):
        super().__init__(message)
        self.distinct_count = distinct_count
        self.capacity = capacity


class ExportError(CleaningError):
    """Raised when the cleaned snapshot cannot be written.

    Attributes:
        destination: Path that failed to be written
    """

    def __init__(self, message: str, destination: Optional[str] = None):
        super().__init__(message)
        self.destination = destination


# ============================================================================
# Ports (implemented by adapters)
# ============================================================================

class IngestionPort(ABC):
    """Abstract contract for loading a raw snapshot.

    Adapters parse the source, validate every record against the input schema
    and hand back a DataFrame (one row per record, columns in input key order).
    Schema violations are fatal: they raise ValidationError after collecting
    every offending record, never skip records silently.
    """

    @abstractmethod
    def ingest(self, source: str) -> tuple[pd.DataFrame, list[str]]:
        """Load and validate the snapshot.

        Parameters:
            source: Source identifier (file path)

        Returns:
            tuple: (records DataFrame, field order as seen in the input)

        Raises:
            SourceNotFoundError: If source doesn't exist or cannot be read
            UnsupportedSourceError: If source is not in the expected format
            ValidationError: If any record violates the input schema
        """
        pass

    @abstractmethod
    def can_ingest(self, source: str) -> bool:
        """Check if this adapter can handle the given source."""
        pass


class AdjudicationPort(ABC):
    """Abstract contract for an adjudication front end.

    A front end drains ``queue.pending`` by calling ``queue.resolve`` once per
    flagged record. It blocks until every pending decision is resolved; there
    is no timeout and no cancellation path.

    Example Usage:
        ```python
        queue = AdjudicationQueue(RuleGroup.PRESSURE)
        for index in mask.invalid_indices("ranges"):
            queue.enqueue(index, store.get(index))
        adjudicator.adjudicate(queue)
        queue.require_complete()
        ```
    """

    @abstractmethod
    def adjudicate(self, queue: 'AdjudicationQueue') -> None:
        """Resolve every pending decision in the queue.

        Parameters:
            queue: Queue of flagged records awaiting a directive

        Raises:
            DirectiveRejectedError: If the front end cannot re-prompt for a bad directive
            AdjudicationIncompleteError: If a decision cannot be obtained
        """
        pass


class ExportPort(ABC):
    """Abstract contract for serializing the cleaned collection."""

    @abstractmethod
    def serialize(self, store: 'RecordStore') -> str:
        """Serialize the records to structured text."""
        pass

    @abstractmethod
    def export(self, store: 'RecordStore', destination: Union[str, Path]) -> Path:
        """Write the serialized records to a destination.

        Raises:
            ExportError: If the destination cannot be written
        """
        pass
