"""Version-control assistant that drives the ``git`` CLI."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from swarm.agents.base import Agent
from swarm.agents.process import run_command
from swarm.core.errors import ExternalServiceError, ToolError
from swarm.core.models import AgentDescriptor, Message, Tool
from swarm.observability.logging import get_logger
from swarm.services.ai import AITextService, user_turn

logger = get_logger(__name__)

MAX_DIFF_SIZE = 4000
NEED_MORE_CONTEXT = "NEED_MORE_CONTEXT"

USAGE = """I can help you with Git operations! Try these commands:
- status: Show repository status
- add [files]: Stage files (defaults to '.')
- commit [message]: Commit staged changes, generating a message when omitted
- branch <name>: Create and switch to a new branch
- checkout <branch>: Switch branches
- merge <branch>: Merge a branch into the current one
- diff: Show pending changes
- push / pull: Sync with the remote
- cd <path>: Change working directory"""

COMMIT_PROMPT = (
    "You generate clear and concise git commit messages from diffs, using the conventional "
    "commits format: type(scope): description. Types: feat, fix, docs, style, refactor, test, "
    f"chore. If the changes cannot be determined, reply with {NEED_MORE_CONTEXT}."
)

GIT_TOOL = Tool(
    name="git",
    description="Run a git assistant command such as 'status' or 'commit <message>'",
    parameters={"command": "Command line understood by the git agent"},
)


class GitAssistantAgent(Agent):
    def __init__(
        self,
        descriptor: AgentDescriptor,
        ai: AITextService,
        workdir: str = ".",
        timeout: Optional[float] = 120.0,
    ) -> None:
        if not any(tool.name == GIT_TOOL.name for tool in descriptor.tools):
            descriptor.tools.append(GIT_TOOL)
        super().__init__(descriptor)
        self._ai = ai
        self.workdir = Path(workdir)
        self._timeout = timeout

    async def handle_message(self, message: Message) -> Message:
        return self.reply(await self._dispatch(message.content))

    async def run_tool(self, tool: Tool, params: Dict[str, str]) -> str:
        if tool.name != GIT_TOOL.name:
            raise ToolError(f"Unsupported tool '{tool.name}'")
        return await self._dispatch(params["command"])

    async def _dispatch(self, text: str) -> str:
        parts = text.split()
        if not parts:
            return USAGE
        command, args = parts[0].lower(), parts[1:]

        if command == "cd" and args:
            return self._change_dir(" ".join(args))
        if command == "status":
            return self._format_status(await self._git("status", "--porcelain", "-b"))
        if command == "add":
            await self._git("add", *(args or ["."]))
            return f"Staged {' '.join(args or ['.'])}"
        if command == "commit":
            return await self._commit(" ".join(args))
        if command == "branch" and args:
            await self._git("checkout", "-b", args[0])
            return f"Created and switched to branch '{args[0]}'"
        if command == "checkout" and args:
            await self._git("checkout", args[0])
            return f"Switched to branch '{args[0]}'"
        if command == "merge" and args:
            output = await self._git("merge", args[0])
            return output or f"Merged '{args[0]}'"
        if command == "diff":
            return await self._git("diff") or "No changes detected."
        if command in ("push", "pull"):
            return await self._git(command) or f"{command} complete"
        return USAGE

    def _change_dir(self, path: str) -> str:
        target = (self.workdir / path).resolve()
        if not target.is_dir():
            raise ToolError(f"Directory does not exist: {target}")
        self.workdir = target
        return f"Working directory changed to: {target}"

    async def _commit(self, message: str) -> str:
        if not message:
            message = await self._generate_commit_message(await self._current_diff())
        await self._git("add", ".")
        await self._git("commit", "-m", message)
        return f"Committed changes: {message}"

    async def _current_diff(self) -> str:
        diff = await self._git("diff", "--staged")
        if not diff:
            diff = await self._git("diff")
        if not diff:
            raise ToolError(f"No changes detected in directory: {self.workdir}")
        return diff

    async def _generate_commit_message(self, diff: str) -> str:
        if len(diff) > MAX_DIFF_SIZE:
            files = diff.count("diff --git")
            return f"feat: large update ({files} files changed)"
        reply = (await self._ai.chat(COMMIT_PROMPT, user_turn(diff))).strip()
        if not reply or NEED_MORE_CONTEXT in reply:
            raise ToolError("Changes are too complex for an automatic commit message; provide one")
        return reply

    async def _git(self, *args: str) -> str:
        try:
            returncode, stdout, stderr = await run_command(
                "git", *args, cwd=str(self.workdir), timeout=self._timeout
            )
        except OSError as exc:
            raise ExternalServiceError(f"Unable to run git: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise ExternalServiceError(
                f"git {' '.join(args)} timed out after {self._timeout}s"
            ) from exc
        if returncode != 0:
            logger.warning("git_failed", args=list(args), returncode=returncode)
            raise ExternalServiceError(f"git {' '.join(args)} failed: {stderr}")
        return stdout

    @staticmethod
    def _format_status(porcelain: str) -> str:
        lines = porcelain.splitlines()
        if len(lines) <= 1:
            branch = lines[0][3:] if lines and lines[0].startswith("## ") else "unknown"
            return f"On branch: {branch}\nRepository is clean. No changes detected."

        sections: Dict[str, List[str]] = {"Staged": [], "Modified": [], "Untracked": []}
        for line in lines[1:]:
            if len(line) < 4:
                continue
            code, path = line[:2], line[3:].strip()
            if code == "??":
                sections["Untracked"].append(path)
            elif code[0] != " ":
                sections["Staged"].append(path)
            else:
                sections["Modified"].append(path)

        out = [f"On branch: {lines[0][3:]}"]
        for title, files in sections.items():
            if files:
                out.append(f"{title} files:")
                out.extend(f"  - {f}" for f in files)
        return "\n".join(out)
