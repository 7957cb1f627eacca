"""Agent that turns topics into haiku through the AI text service."""
from __future__ import annotations

from swarm.agents.base import Agent
from swarm.core.models import (
    AgentDescriptor,
    Message,
    State,
    StateMachine,
    ValidationRule,
)
from swarm.services.ai import AITextService, user_turn

SYSTEM_PROMPT = (
    "You are a poetic AI that creates haikus. A haiku is a three-line poem with 5 syllables "
    "in the first line, 7 in the second, and 5 in the third. Blend nature imagery with "
    "technical concepts. Reply with the haiku only."
)


def haiku_state_machine() -> StateMachine:
    return StateMachine(
        states={
            "awaiting_topic": State(
                name="awaiting_topic",
                prompt="What shall we crystallize into algorithmic verse today?",
                transitions={"topic_received": "complete"},
            ),
            "complete": State(
                name="complete",
                prompt="Shall we compute another poetic sequence?",
                transitions={
                    "yes": "awaiting_topic",
                    "no": "goodbye",
                    "topic_received": "complete",
                },
                validation=[
                    ValidationRule(
                        pattern=r"(yes|no)",
                        error_message="Reply 'yes' for another haiku or 'no' to finish.",
                    )
                ],
            ),
            "goodbye": State(
                name="goodbye",
                prompt="May your algorithms flow like cherry blossoms in the digital wind...",
                transitions={"topic_received": "complete"},
            ),
        },
        initial_state="awaiting_topic",
    )


class HaikuAgent(Agent):
    def __init__(self, descriptor: AgentDescriptor, ai: AITextService) -> None:
        if descriptor.state_machine is None:
            descriptor.state_machine = haiku_state_machine()
        super().__init__(descriptor)
        self._ai = ai

    async def handle_message(self, message: Message) -> Message:
        text = message.content.strip()
        if self.state_manager.current_state_name == "complete":
            answer = text.lower()
            if answer in ("yes", "no"):
                self.state_manager.transition(answer)
                state = self.state_manager.get_current_state()
                return self.reply(state.prompt if state else "")

        if not text:
            state = self.state_manager.get_current_state()
            return self.reply(state.prompt if state else "")

        haiku = await self._ai.chat(SYSTEM_PROMPT, user_turn(f"Create a haiku about: {text}"))
        self.state_manager.transition("topic_received")
        return self.reply(haiku.strip())
