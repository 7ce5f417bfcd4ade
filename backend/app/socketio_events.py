from flask_socketio import join_room, leave_room, emit
from app import socketio
from flask import current_app, request
from app.services.games.registry import get_registry
from typing import Dict, Any
import time


def emit_state_update(session, state) -> None:
    """Push a transition to every client in the game's room."""
    # Use socketio.emit since this may be called from a background task
    socketio.emit(
        'state_update',
        {'game_code': session.game_code, 'state': state.value},
        to=f"game:{session.game_code}",
        namespace='/ws',
    )


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # On disconnect, if this socket was the last owner of a session,
    # end it after a grace period unless an owner reconnects
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    game_code = ctx.get('game_code')
    if ctx.get('is_session_owner') and game_code:
        _owner_count[game_code] = max(0, _owner_count.get(game_code, 0) - 1)
        _schedule_end_if_no_owner(game_code, float(current_app.config.get('SESSION_END_GRACE_SEC', 2.0)))


def _game_code(data):
    game_code = data.get('game_code') if isinstance(data, dict) else None
    if not isinstance(game_code, str) or not game_code.strip():
        return None
    return game_code.strip().upper()


def handle_join_game(data):
    code = _game_code(data)
    if not code:
        emit('error', {'message': 'game_code is required'})
        return
    is_session_owner = bool(data.get('is_session_owner'))
    room = f"game:{code}"
    join_room(room)
    # Track session owner presence and socket context
    _sid_to_ctx[_get_sid()] = {'game_code': code, 'is_session_owner': is_session_owner}
    if is_session_owner:
        _owner_count[code] = _owner_count.get(code, 0) + 1
        _cancel_scheduled_end(code)
    emit('joined', {'room': room})


def handle_leave_game(data):
    code = _game_code(data)
    if not code:
        emit('error', {'message': 'game_code is required'})
        return
    room = f"game:{code}"
    leave_room(room)
    emit('left', {'room': room})
    # Explicit quit by an owner ends the session immediately
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx and ctx.get('is_session_owner') and ctx.get('game_code') == code:
        _owner_count[code] = max(0, _owner_count.get(code, 0) - 1)
        end_session(code)


def handle_ping(data):
    emit('pong', data or {})

# ---- Session owner lifecycle helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_owner_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def end_session(game_code: str) -> bool:
    """End the session: cancel its timer, drop it and notify clients."""
    session = get_registry().end(game_code)
    _owner_count.pop(game_code, None)
    _end_deadline.pop(game_code, None)
    if session is None:
        return False
    current_app.logger.info(f"[session-end] game={game_code}")
    socketio.emit('session_ended', {'game_code': game_code}, to=f"game:{game_code}", namespace='/ws')
    return True

def _schedule_end_if_no_owner(game_code: str, delay_sec: float) -> None:
    if _owner_count.get(game_code, 0) > 0:
        return
    deadline = time.time() + delay_sec
    _end_deadline[game_code] = deadline
    app = current_app._get_current_object()

    def _runner(code: str, deadline: float):
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _owner_count.get(code, 0) == 0 and _end_deadline.get(code) == deadline:
            with app.app_context():
                end_session(code)

    socketio.start_background_task(_runner, game_code, deadline)

def _cancel_scheduled_end(game_code: str) -> None:
    _end_deadline.pop(game_code, None)



def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('join_game', handle_join_game, namespace=ns)
        socketio.on_event('leave_game', handle_leave_game, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
