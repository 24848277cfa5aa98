"""Communication logging module.

Records AT commands, exchanges, HTTP requests and request state
transitions for debugging the modem link.
"""

from firebase_at.logging.log_models import LogEntry
from firebase_at.logging.communication_logger import CommunicationLogger

__all__ = ['LogEntry', 'CommunicationLogger']
