"""
YAML file storage for game snapshots, keyed by session.

The engine never calls this module itself; the app and the CLI hand saved
states in and out of it.
"""
import logging
import os
import re
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterator, List, Optional

import yaml
from filelock import FileLock, Timeout

from bracket.models import GameState

logger = logging.getLogger(__name__)

SESSION_KEY_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')


def validate_session_key(session_key: str) -> str:
    if not isinstance(session_key, str) or not SESSION_KEY_PATTERN.match(session_key):
        raise ValueError(f'Invalid session key: {session_key!r}')
    return session_key


class GameStore:
    def __init__(self, data_dir: str, lock_timeout: float = 10):
        self.data_dir = data_dir
        self.sessions_dir = os.path.join(data_dir, 'sessions')
        os.makedirs(self.sessions_dir, exist_ok=True)
        self._lock = FileLock(os.path.join(data_dir, '.lock'), timeout=lock_timeout)

    def _session_file(self, session_key: str) -> str:
        return os.path.join(self.sessions_dir, f'{validate_session_key(session_key)}.yaml')

    def save(self, session_key: str, state: GameState) -> bool:
        """Write a snapshot of ``state``. Returns False if it could not be saved."""
        path = self._session_file(session_key)
        payload = {'saved_at': datetime.now().isoformat(), 'game': state.to_dict()}
        try:
            with self._lock:
                tmp_path = f'{path}.tmp'
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(payload, f, default_flow_style=False, allow_unicode=True)
                os.replace(tmp_path, path)
        except (OSError, Timeout, yaml.YAMLError) as e:
            logger.warning(f'Failed to save game session {session_key}: {e}')
            return False
        return True

    def restore(self, session_key: str) -> Optional[GameState]:
        """Load the snapshot for ``session_key``, or None if there is none."""
        path = self._session_file(session_key)
        if not os.path.exists(path):
            return None
        try:
            with self._lock:
                with open(path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
            return GameState.from_dict(data['game'])
        except (OSError, Timeout, yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            logger.warning(f'Failed to restore game session {session_key}: {e}')
            return None

    @contextmanager
    def session(self, session_key: str) -> Iterator[Optional[GameState]]:
        """
        Hold the store lock while a session is restored, changed and saved.

        Yields the restored state, or None if there is none. Saves made through
        this store inside the block reuse the held lock, so concurrent requests
        on a session apply one after the other. Raises ``filelock.Timeout`` if
        the lock cannot be taken.
        """
        with self._lock:
            yield self.restore(session_key)

    def delete(self, session_key: str) -> bool:
        path = self._session_file(session_key)
        with self._lock:
            if not os.path.exists(path):
                return False
            os.remove(path)
        return True

    def list_sessions(self) -> List[str]:
        if not os.path.isdir(self.sessions_dir):
            return []
        return sorted(name[:-len('.yaml')] for name in os.listdir(self.sessions_dir)
                      if name.endswith('.yaml'))

    def cleanup_expired(self, max_age: timedelta) -> int:
        """Remove snapshots not saved within ``max_age``. Returns how many were removed."""
        cutoff = datetime.now() - max_age
        removed = 0
        with self._lock:
            for session_key in self.list_sessions():
                path = os.path.join(self.sessions_dir, f'{session_key}.yaml')
                if datetime.fromtimestamp(os.path.getmtime(path)) < cutoff:
                    os.remove(path)
                    removed += 1
        if removed:
            logger.info(f'Removed {removed} expired game sessions')
        return removed


def autosave(store: GameStore, session_key: str) -> Callable[[GameState], None]:
    """
    Listener for GameStateMachine that saves every committed state.

    A failed save is logged and otherwise ignored; the in-memory game stays
    authoritative.
    """
    validate_session_key(session_key)

    def save_state(state: GameState):
        if not store.save(session_key, state):
            logger.warning(f'Autosave skipped for session {session_key}')

    return save_state
