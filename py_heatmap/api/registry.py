"""In-memory registry of live heightfield sessions shared by the API routers."""

import threading
import time
import uuid
from contextlib import contextmanager
from typing import Dict, List, Tuple

import structlog
from fastapi import HTTPException

from ..core.errors import (
    DimensionMismatchError,
    GenerationInProgressError,
    OutOfBoundsError,
)
from ..config.config import settings
from ..core.session import HeightfieldSession

logger = structlog.get_logger()


class SessionRegistry:
    """Thread-safe mapping of session id to HeightfieldSession."""

    def __init__(self, max_sessions: int):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, HeightfieldSession] = {}
        self._lock = threading.Lock()

    def create(self, width: int, height: int, fill_value: float, strict: bool) -> Tuple[str, HeightfieldSession]:
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise HTTPException(status_code=409, detail="Session limit reached")
            with core_errors():
                session = HeightfieldSession(
                    width, height, fill_value=fill_value, strict_dimensions=strict
                )
            session_id = str(uuid.uuid4())
            self._sessions[session_id] = session

        logger.info("Session created", session_id=session_id, width=width, height=height)
        return session_id, session

    def get(self, session_id: str) -> HeightfieldSession:
        """Get session or raise 404 if not found."""
        session = self._sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise HTTPException(status_code=404, detail="Session not found")
        logger.info("Session discarded", session_id=session_id)

    def items(self) -> List[Tuple[str, HeightfieldSession]]:
        with self._lock:
            return list(self._sessions.items())

    def wait_all(self, timeout: float) -> bool:
        """
        Block until every session's generation ends or timeout seconds pass
        in total.

        Returns:
            True if no generation is running afterwards
        """
        deadline = time.monotonic() + timeout
        idle = True
        for session_id, session in self.items():
            remaining = max(0.0, deadline - time.monotonic())
            if not session.wait(timeout=remaining):
                logger.warning("Generation did not finish in time", session_id=session_id)
                idle = False
        return idle

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


@contextmanager
def core_errors():
    """Translate heightfield errors into HTTP errors."""
    try:
        yield
    except OutOfBoundsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DimensionMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))


registry = SessionRegistry(settings.max_sessions)
