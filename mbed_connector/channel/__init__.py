"""Long-poll notification channel: controller, decoder, dispatcher, correlator."""

from .controller import NotificationChannel, PULL_PATH, is_transient
from .correlator import PendingRequestCorrelator, PendingAsyncRequest
from .decoder import decode_batch, encode_batch, decode_payload, encode_payload
from .dispatcher import EventDispatcher

__all__ = [
    'NotificationChannel',
    'PULL_PATH',
    'is_transient',
    'PendingRequestCorrelator',
    'PendingAsyncRequest',
    'decode_batch',
    'encode_batch',
    'decode_payload',
    'encode_payload',
    'EventDispatcher',
]
