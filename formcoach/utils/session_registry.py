"""
Session Registry Module
=======================

Thread-safe registry of live analyzer sessions for the HTTP host.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..analyzers import ExerciseAnalyzer
from ..config import AnalyzerConfig
from ..errors import FormCoachError

logger = logging.getLogger(__name__)


class UnknownSessionError(FormCoachError, KeyError):
    """Raised when a session id is not registered."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class SessionRegistry:
    """
    Thread-safe store of ExerciseAnalyzer instances keyed by session id.

    The registry lock guards the mapping itself. Each session also has its
    own lock so frames for the same session are processed one at a time.

    Usage:
        registry = SessionRegistry()
        session_id = registry.create("squat")
        with registry.acquire(session_id) as analyzer:
            analyzer.analyze(frame)
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        """Initialize an empty registry."""
        self.config = config or AnalyzerConfig()
        self._analyzers: Dict[str, ExerciseAnalyzer] = {}
        self._session_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def create(self, exercise_id: str) -> str:
        """
        Create a new session.

        Args:
            exercise_id: Exercise id or alias

        Returns:
            New session id

        Raises:
            ConfigurationError: If the exercise is unknown
        """
        # Built outside the lock; an unknown id never touches the registry
        analyzer = ExerciseAnalyzer(exercise_id, self.config)
        session_id = uuid.uuid4().hex
        with self._lock:
            self._analyzers[session_id] = analyzer
            self._session_locks[session_id] = threading.Lock()
        logger.info("Session %s started for '%s'", session_id, analyzer.exercise_id)
        return session_id

    @contextmanager
    def acquire(self, session_id: str) -> Iterator[ExerciseAnalyzer]:
        """Hold the session lock while using its analyzer."""
        with self._lock:
            analyzer = self._analyzers.get(session_id)
            session_lock = self._session_locks.get(session_id)
        if analyzer is None or session_lock is None:
            raise UnknownSessionError(session_id)
        with session_lock:
            yield analyzer

    def remove(self, session_id: str) -> ExerciseAnalyzer:
        """Drop a session and return its analyzer."""
        with self._lock:
            analyzer = self._analyzers.pop(session_id, None)
            self._session_locks.pop(session_id, None)
        if analyzer is None:
            raise UnknownSessionError(session_id)
        logger.info("Session %s closed", session_id)
        return analyzer

    def __len__(self) -> int:
        with self._lock:
            return len(self._analyzers)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._analyzers
