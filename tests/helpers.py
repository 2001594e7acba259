"""Fake generation backends shared by the test modules."""

import asyncio

from roleplay_room.models import ChatMessage, GenerationOptions, StructuredTurn


class ScriptedBackend:
    """Returns queued turns (or raises queued exceptions) and records every prompt.

    Once the script runs out it answers with a numbered default turn.
    """

    def __init__(self, script: list[StructuredTurn | Exception] | None = None, tag: str = "agent") -> None:
        self._script = list(script or [])
        self._tag = tag
        self.calls: list[list[ChatMessage]] = []
        self.options: list[GenerationOptions] = []

    async def complete(self, messages: list[ChatMessage], options: GenerationOptions) -> StructuredTurn:
        self.calls.append(list(messages))
        self.options.append(options)
        if self._script:
            item = self._script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        n = len(self.calls)
        return StructuredTurn(thought=f"{self._tag} thought {n}", say=f"{self._tag} line {n}")


class BlockingBackend:
    """Never answers until released; used to test cancellation mid-call."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def complete(self, messages: list[ChatMessage], options: GenerationOptions) -> StructuredTurn:
        self.started.set()
        await self.release.wait()
        return StructuredTurn(thought="late", say="too late")
