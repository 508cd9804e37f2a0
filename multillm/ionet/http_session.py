#!/usr/bin/env python3
"""Per-thread requests sessions for the gateway."""

import threading
from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter

USER_AGENT = "multillm/0.1"


class ThreadLocalSessionManager:
    """
    Hands each worker thread its own requests.Session.

    Sessions are not thread-safe, and dispatch runs one blocking call per
    worker, so a single pooled connection per thread is enough. Each
    dispatch starts fresh worker threads, so sessions owned by threads
    that have exited are closed whenever a new session is created.
    """

    def __init__(self, default_headers: Optional[Dict[str, str]] = None):
        self._local = threading.local()
        self._default_headers = {"User-Agent": USER_AGENT, **(default_headers or {})}
        self._sessions: Dict[threading.Thread, requests.Session] = {}
        self._sessions_lock = threading.Lock()

    def get_session(self) -> requests.Session:
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._new_session()
            self._local.session = session
            with self._sessions_lock:
                stale = self._release_dead_threads()
                self._sessions[threading.current_thread()] = session
            for old in stale:
                old.close()
        return session

    def _release_dead_threads(self):
        # Caller holds _sessions_lock.
        dead = [thread for thread in self._sessions if not thread.is_alive()]
        return [self._sessions.pop(thread) for thread in dead]

    def _new_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(self._default_headers)

        # RetryPolicy decides on retries; urllib3 must not retry underneath it.
        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=1, max_retries=0)
        for prefix in ('https://', 'http://'):
            session.mount(prefix, adapter)
        return session

    @property
    def session_count(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    def close_all(self):
        with self._sessions_lock:
            sessions, self._sessions = list(self._sessions.values()), {}
        for session in sessions:
            session.close()
        self._local = threading.local()
