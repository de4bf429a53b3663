from datacollect.models.answer_record import AnswerRecord
from datacollect.models.conversation_state import ConversationStateSlot

__all__ = [
    "AnswerRecord",
    "ConversationStateSlot",
]
