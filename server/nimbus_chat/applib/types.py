from enum import Enum

class ClientEvent(Enum):
    JOIN = 'join'
    MESSAGE = 'message'
