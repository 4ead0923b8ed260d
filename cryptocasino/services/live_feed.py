"""
Live winners feed over Socket.IO.

Clients connect to the ``/live`` namespace and receive a ``recent_win``
event for every settled round with a positive net win.
"""
import logging
from flask import current_app, request
from flask_socketio import emit

from cryptocasino.schemas import RecentWinSchema

logger = logging.getLogger(__name__)

LIVE_NAMESPACE = '/live'


class LiveFeed:
    def __init__(self, socketio=None):
        self.socketio = socketio
        self.connected = set()

    def init_app(self, app, socketio):
        self.socketio = socketio
        socketio.on_event('connect', self.handle_connect, namespace=LIVE_NAMESPACE)
        socketio.on_event('disconnect', self.handle_disconnect, namespace=LIVE_NAMESPACE)
        app.extensions['live_feed'] = self

    def handle_connect(self, auth=None):
        self.connected.add(request.sid)
        logger.info(f"Live feed client connected: {request.sid}")
        emit('connected', {'namespace': LIVE_NAMESPACE})

    def handle_disconnect(self, *args):
        self.connected.discard(request.sid)
        logger.info(f"Live feed client disconnected: {request.sid}")

    def broadcast_win(self, payload):
        self.socketio.emit('recent_win', payload, namespace=LIVE_NAMESPACE)


def publish_recent_win(game_session):
    """Broadcasts a settled winning round. Delivery failures are logged and never undo the settlement."""
    if not current_app.config.get('LIVE_FEED_ENABLED', False):
        return
    feed = current_app.extensions.get('live_feed')
    if feed is None or feed.socketio is None:
        return

    payload = RecentWinSchema().dump(game_session)
    try:
        feed.broadcast_win(payload)
    except Exception:
        current_app.logger.error(f"Failed to broadcast win for session {game_session.id}", exc_info=True)
