"""In-memory history of generation results."""

from collections import deque
from threading import Lock
from typing import Deque, List, Optional, Dict, Any

from src.core.models import GenerationResult


class GenerationHistory:
    """Keeps the most recent generation results.

    Results are stored as-is (they are immutable); the oldest entry is
    dropped once max_history is reached.
    """

    def __init__(self, max_history: int = 100):
        """Initialize history.

        Args:
            max_history: Maximum number of results to keep
        """
        self.max_history = max_history
        self._results: Deque[GenerationResult] = deque(maxlen=max_history)
        self._lock = Lock()

    def add(self, result: GenerationResult) -> None:
        """Add a generation result to history."""
        with self._lock:
            self._results.append(result)

    def get_latest(self, n: Optional[int] = None) -> List[GenerationResult]:
        """Get the N most recent results, newest first.

        Args:
            n: Number of results to return (None = all)

        Returns:
            List of results, most recent first
        """
        with self._lock:
            results = list(reversed(self._results))
        return results if n is None else results[:max(0, n)]

    def get_by_id(self, result_id: str) -> Optional[GenerationResult]:
        """Get a result by its id.

        Returns:
            GenerationResult if found, None otherwise
        """
        with self._lock:
            for result in self._results:
                if result.id == result_id:
                    return result
        return None

    def clear(self) -> None:
        """Clear all history."""
        with self._lock:
            self._results.clear()

    def get_count(self) -> int:
        """Get number of results in history."""
        with self._lock:
            return len(self._results)

    def export_metadata(self, n: Optional[int] = None) -> List[Dict[str, Any]]:
        """Export id and metadata of the latest results, newest first."""
        return [
            {"id": result.id, **result.metadata.model_dump(mode="json")}
            for result in self.get_latest(n)
        ]
