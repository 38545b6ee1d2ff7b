"""
moodcity/emotions/integration.py

Hooks conversations into the emotion core.

The conversation system only reports lifecycle events. This module turns
each one into an emotion trigger, a needs change and contagion toward the
other party. When a conversation ends it also emits ConversationProcessed
so social and narrative consumers can react without being called directly.
"""

from typing import Optional, Union

from loguru import logger

from moodcity.config.tables import load_tables
from moodcity.emotions.bonds import BOND_EVENTS, BondStore
from moodcity.emotions.contagion import ContagionModel
from moodcity.emotions.engine import EmotionalStateStore
from moodcity.emotions.models import EmotionalState
from moodcity.emotions.types import ConversationEvent, Emotion
from moodcity.events.domain import ConversationProcessed

POSITIVE_EMOTIONS = (Emotion.JOY, Emotion.TRUST)


def narrative_intensity(state: Optional[EmotionalState]) -> float:
    """How charged the agent is right now, for narrative weighting."""
    if state is None:
        return 50.0
    return (state.joy + state.sadness + state.anger + state.fear) / 4


class ConversationEmotions:

    def __init__(
        self,
        store: EmotionalStateStore,
        contagion: Optional[ContagionModel] = None,
        bonds: Optional[BondStore] = None,
    ):
        self.store = store
        self.bonds = bonds or BondStore(clock=store.clock)
        self.contagion = contagion or ContagionModel(store, self.bonds)

    def update_emotions_from_conversation(
        self,
        agent_id: str,
        event: Union[ConversationEvent, str],
        other_agent_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> Optional[EmotionalState]:
        event = ConversationEvent(event)
        effect = load_tables().conversation_effects[event]

        state = self.store.trigger_emotion(
            agent_id, effect.emotion, effect.intensity,
            cause=event.value, conversation_id=conversation_id,
        )
        if state is None:
            return None

        if effect.needs:
            self.store.update_needs(agent_id, effect.needs)

        if other_agent_id:
            # Full proximity: they are face to face
            self.contagion.process_contagion(
                agent_id, other_agent_id, proximity=1.0,
                context="conversation", conversation_id=conversation_id,
            )

            if event == ConversationEvent.CONVERSATION_ENDED:
                self.store.events.publish(ConversationProcessed(
                    world_id=self.store.world_id,
                    agent_id=agent_id,
                    other_agent_id=other_agent_id,
                    conversation_id=conversation_id,
                    was_positive=effect.emotion in POSITIVE_EMOTIONS,
                    emotional_intensity=narrative_intensity(self.store.get_emotional_state(agent_id)),
                ))
        return state

    def process_post_conversation(
        self,
        agent_a: str,
        agent_b: str,
        was_positive: bool,
        conversation_id: Optional[str] = None,
    ) -> None:
        """Update the pair's bond, then let both agents feel how it went."""
        changes = BOND_EVENTS["positive_conversation" if was_positive else "negative_conversation"]
        self.bonds.update_bond(agent_a, agent_b, changes)

        event = ConversationEvent.POSITIVE_EXCHANGE if was_positive else ConversationEvent.NEGATIVE_EXCHANGE
        self.update_emotions_from_conversation(agent_a, event, agent_b, conversation_id)
        self.update_emotions_from_conversation(agent_b, event, agent_a, conversation_id)

        logger.info(f"💬 Post-conversation emotions for {agent_a} and {agent_b} ({event.value})")
