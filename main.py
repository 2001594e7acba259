"""Roleplay Room - console runner. Seats the scenario's agents and streams the chat."""

import argparse
import asyncio
import logging
import os
import random
import signal
import sys
from pathlib import Path

from roleplay_room.config import load_env

load_env()

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


async def run_console(args: argparse.Namespace) -> int:
    from roleplay_room.agent import create_agents
    from roleplay_room.config import backend_from_env, load_scenario
    from roleplay_room.human import HumanParticipant
    from roleplay_room.llm import LLMError
    from roleplay_room.parsing import DecodeError
    from roleplay_room.room import Chatroom

    scenario = load_scenario(args.scenario)
    backend = backend_from_env()

    rng = random.Random(args.seed) if args.seed is not None else None
    room = Chatroom(scenario.room, rng=rng)
    for agent in create_agents(
        scenario.personas, backend, scenario.room.private_thought_buffer_size
    ):
        room.add_participant(agent)
    human_name = args.human or scenario.human
    if human_name:
        room.set_human(HumanParticipant(human_name))

    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel.set)
        except NotImplementedError:  # Windows
            pass

    try:
        async for event in room.run(max_rounds=args.rounds, cancel=cancel):
            name = room.display_name(event.sender_id)
            print(f"[{event.timestamp:%H:%M:%S}] {name}: {event.content}")
    except DecodeError as e:
        print(f"\nUndecodable response from the model:\n{e.raw}", file=sys.stderr)
        return 1
    except LLMError as e:
        print(f"\nLLM backend error: {e}", file=sys.stderr)
        if e.raw:
            print(e.raw, file=sys.stderr)
        return 1

    if cancel.is_set():
        print("\nStopped.")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Roleplay Room console runner")
    parser.add_argument("scenario", type=Path, nargs="?", default=None,
                        help="Scenario JSON file (default: built-in two-persona scene)")
    parser.add_argument("--rounds", type=int, default=None,
                        help="Number of rounds (default: room max_rounds)")
    parser.add_argument("--human", default=None,
                        help="Join the room as a human with this display name")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the speaking order")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")
    parser.add_argument("--serve", action="store_true",
                        help="Serve the HTTP API with uvicorn instead")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.serve:
        import uvicorn

        print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
        uvicorn.run("backend.app:app", host=HOST, port=int(BACKEND_PORT))
        return

    from roleplay_room.config import ConfigError

    try:
        sys.exit(asyncio.run(run_console(args)))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
