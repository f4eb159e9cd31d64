import logging

logger = logging.getLogger(__name__)


class NullBroadcaster:
    """
    Live-update handle for deployments without a socket channel.

    Anything with an emit(event, data) method can stand in for it, e.g.
    a flask_socketio.SocketIO instance.
    """

    def emit(self, event, data):
        logger.debug("no live channel, dropping %s event", event)
