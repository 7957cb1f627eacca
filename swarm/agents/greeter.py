"""Front-desk agent that welcomes users and points them at specialists."""
from __future__ import annotations

from swarm.agents.base import Agent
from swarm.core.models import AgentDescriptor, Message, State, StateMachine

_HAIKU_WORDS = {"yes", "haiku"}
_FAREWELL_WORDS = {"goodbye", "bye", "exit", "quit", "no"}

WELCOME = (
    "Welcome to the laboratory! Don't mind the sparks, they're mostly decorative. "
    "How may I assist you today? (Try: 'help', 'haiku', or 'goodbye')"
)
HELP = (
    "Here is who works in the lab:\n"
    "- git: manages and documents our experiments\n"
    "- haiku: turns any topic into 5-7-5 verse\n"
    "- browser: drives a web browser for you"
)
TRANSFER = "This looks like a job for our haiku department. Transferring you now..."
FAREWELL = "Farewell, fellow tinkerer! May your code compile and your tests pass... mostly!"


def greeter_state_machine() -> StateMachine:
    return StateMachine(
        states={
            "greeting": State(
                name="greeting",
                prompt=WELCOME,
                transitions={"help": "help", "transfer": "transfer_to_haiku", "farewell": "goodbye"},
            ),
            "help": State(
                name="help",
                prompt=HELP,
                transitions={"transfer": "transfer_to_haiku", "farewell": "goodbye"},
            ),
            "transfer_to_haiku": State(
                name="transfer_to_haiku",
                prompt=TRANSFER,
                transitions={"greet": "greeting"},
            ),
            "goodbye": State(name="goodbye", prompt=FAREWELL, transitions={"greet": "greeting"}),
        },
        initial_state="greeting",
    )


class GreeterAgent(Agent):
    """Routes newcomers: help, transfer to haiku, or farewell."""

    def __init__(self, descriptor: AgentDescriptor) -> None:
        if descriptor.state_machine is None:
            descriptor.state_machine = greeter_state_machine()
        super().__init__(descriptor)

    async def handle_message(self, message: Message) -> Message:
        text = message.content.strip().lower()
        state = self.state_manager.current_state_name

        if state in ("transfer_to_haiku", "goodbye"):
            # A new message after a handoff or farewell starts a fresh visit.
            self.state_manager.transition("greet")
            state = self.state_manager.current_state_name

        if text == "help" and state == "greeting":
            self.state_manager.transition("help")
            return self.reply(HELP)
        if text in _HAIKU_WORDS:
            self.state_manager.transition("transfer")
            return self.reply(TRANSFER)
        if text in _FAREWELL_WORDS:
            self.state_manager.transition("farewell")
            return self.reply(FAREWELL)
        if state == "help":
            return self.reply("Which department interests you? (Try: 'haiku' or 'goodbye')")
        return self.reply(WELCOME)

    async def on_transfer(self, target_name: str, message: Message) -> None:
        self.state_manager.transition("transfer")
