"""In-memory card sessions, one per browser.

Nothing is persisted: a restart or an eviction simply starts a fresh session.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from typing import Optional, Tuple

from .ai import GenerationClient
from .state import TarotSession

log = logging.getLogger("oraculum.sessions")

COOKIE_NAME = "oraculum_session"


class SessionRegistry:
    def __init__(self, client: GenerationClient, max_sessions: int = 256):
        self.client = client
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, TarotSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def new_session(self) -> str:
        sid = str(uuid.uuid4())
        self._evict(self.max_sessions - 1)
        self._sessions[sid] = TarotSession(self.client)
        log.info("Session created: %s (%d active)", sid, len(self._sessions))
        return sid

    def get(self, session_id: Optional[str]) -> Optional[TarotSession]:
        if not session_id or session_id not in self._sessions:
            return None
        self._sessions.move_to_end(session_id)
        return self._sessions[session_id]

    def get_or_create(self, session_id: Optional[str]) -> Tuple[str, TarotSession]:
        session = self.get(session_id)
        if session is not None:
            return session_id, session
        sid = self.new_session()
        return sid, self._sessions[sid]

    def _evict(self, limit: int) -> None:
        # Busy sessions are skipped so an in-flight request keeps its target.
        for sid in list(self._sessions):
            if len(self._sessions) <= limit:
                break
            if not self._sessions[sid].busy:
                del self._sessions[sid]
                log.info("Session evicted: %s", sid)

    async def close(self) -> None:
        self._sessions.clear()
        await self.client.close()
