from chatrelay.ui.models.conversation import ConversationState, RequestStatus

__all__ = ["ConversationState", "RequestStatus"]
