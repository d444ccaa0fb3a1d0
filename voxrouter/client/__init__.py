from voxrouter.client.controller import ConversationState, TurnController, TurnPhase
from voxrouter.client.keywords import detect_model
from voxrouter.client.transport import TurnClient, TurnClientError, TurnReply

__all__ = [
    "ConversationState",
    "TurnClient",
    "TurnClientError",
    "TurnController",
    "TurnPhase",
    "TurnReply",
    "detect_model",
]
