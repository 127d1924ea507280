from .state_machine import StateMachine, ChannelState
from .backoff import BackoffConfig, RetryBudget
from .observer import ListenerHandle, ListenerRegistry, NotificationType

__all__ = [
    "StateMachine", "ChannelState",
    "BackoffConfig", "RetryBudget",
    "ListenerHandle", "ListenerRegistry", "NotificationType",
]
