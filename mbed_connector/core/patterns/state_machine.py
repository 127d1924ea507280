from enum import Enum, auto
from typing import Dict, Set
import logging

class ChannelState(Enum):
    STOPPED           = auto()
    POLLING           = auto()
    AWAITING_RESPONSE = auto()
    ERROR             = auto()

class StateMachine:
    """Guards the lifecycle transitions of a notification channel."""

    def __init__(self, initial: ChannelState = ChannelState.STOPPED):
        self._state = initial
        self.logger = logging.getLogger(self.__class__.__name__)
        self._trans: Dict[ChannelState, Set[ChannelState]] = {
            ChannelState.STOPPED:           {ChannelState.POLLING},
            ChannelState.POLLING:           {ChannelState.AWAITING_RESPONSE, ChannelState.ERROR,
                                             ChannelState.STOPPED},
            ChannelState.AWAITING_RESPONSE: {ChannelState.POLLING, ChannelState.ERROR,
                                             ChannelState.STOPPED},
            ChannelState.ERROR:             {ChannelState.POLLING, ChannelState.STOPPED},
        }

    @property
    def state(self) -> ChannelState: return self._state

    def can(self, nxt: ChannelState) -> bool: return nxt in self._trans[self._state]

    def transition(self, nxt: ChannelState) -> bool:
        if self.can(nxt):
            self.logger.debug(f"State transition: {self._state.name} -> {nxt.name}")
            self._state = nxt
            return True
        self.logger.error(f"Invalid state transition: {self._state.name} -> {nxt.name}")
        return False
