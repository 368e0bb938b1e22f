from chatrelay.llms.agent import ChatAgent, StepFinishEvent, StepResult, StepStartEvent
from chatrelay.llms.models import get_default_model, init_model

__all__ = [
    "ChatAgent",
    "StepFinishEvent",
    "StepResult",
    "StepStartEvent",
    "get_default_model",
    "init_model",
]
