"""Per-game mutual exclusion for session mutations.

start/advance/end, joins, submissions and answer reveals all run under the
lock of the game they touch, so two admin clicks can never skip or
double-increment a position and no answer lands after its window closed.

The registry lives in process memory. The app is deployed as a single
Flask-SocketIO server process (``socketio.run`` or one eventlet/gevent
worker), which is also what room broadcasts without a message queue need.
Running several worker processes would need a row lock on ``Game`` instead.
"""

import threading
from contextlib import contextmanager
from typing import Dict

_registry_lock = threading.Lock()
_game_locks: Dict[int, threading.Lock] = {}


def lock_for(game_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _game_locks.get(game_id)
        if lock is None:
            lock = threading.Lock()
            _game_locks[game_id] = lock
        return lock


@contextmanager
def game_lock(game_id: int):
    lock = lock_for(int(game_id))
    with lock:
        yield


def forget(game_id: int) -> None:
    """Drop the lock of a deleted game."""
    with _registry_lock:
        _game_locks.pop(int(game_id), None)
