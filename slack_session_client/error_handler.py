"""
Error tracking for session client errors.

Errors reported by the session client are logged and kept in a bounded
history for status reporting. They never drive the reconnection policy.
"""

import logging
from typing import Optional, Dict, Any, List
from datetime import datetime


class ErrorTracker:
    """
    Bounded history of errors reported during the session lifecycle.
    """

    def __init__(self, max_history: int = 100):
        """
        Initialize the error tracker.

        Args:
            max_history: Number of most recent errors to keep
        """
        self.logger = logging.getLogger(__name__)
        self.error_history: List[Dict[str, Any]] = []
        self.max_history = max_history

    def record_error(self, error: Any, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Record an error in the error history.

        Args:
            error: The exception (or error payload) that occurred
            context: Optional context information
        """
        error_info = {
            'timestamp': datetime.now().isoformat(),
            'error_type': type(error).__name__,
            'error_message': str(error),
            'context': context or {}
        }

        self.error_history.append(error_info)

        if len(self.error_history) > self.max_history:
            self.error_history = self.error_history[-self.max_history:]

    def get_error_statistics(self) -> Dict[str, Any]:
        """
        Get error statistics from the error history.

        Returns:
            Dict containing error statistics
        """
        if not self.error_history:
            return {
                'total_errors': 0,
                'error_types': {},
                'recent_errors': []
            }

        error_types = {}
        for error in self.error_history:
            error_type = error['error_type']
            error_types[error_type] = error_types.get(error_type, 0) + 1

        return {
            'total_errors': len(self.error_history),
            'error_types': error_types,
            'recent_errors': self.error_history[-10:],
            'oldest_error': self.error_history[0]['timestamp'],
            'newest_error': self.error_history[-1]['timestamp']
        }

    def clear_error_history(self) -> None:
        """Clear the error history."""
        self.error_history.clear()
        self.logger.info("Error history cleared")
