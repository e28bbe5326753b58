"""
Run a realtime mock interview from the local microphone.

The interview must already exist on the server (POST /api/mock/create).
Transcript lines and phase changes are printed as they happen; Ctrl-C
ends the interview.

Usage:
    python run_interview.py --session-id <id> [--api-base http://localhost:8000]
"""

import argparse
import asyncio
import logging
import signal
from pathlib import Path

import aiohttp
from dotenv import load_dotenv

from app.interview import InterviewSession, SessionIdentity
from app.interview.models import questions_from
from lib.realtime_voice_framework import ConnectionState, TransportConfig
from lib.realtime_voice_framework.core.errors import RealtimeError

logger = logging.getLogger("run_interview")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a realtime voice mock interview")
    parser.add_argument("--session-id", required=True, help="Interview id from /api/mock/create")
    parser.add_argument("--api-base", default="http://localhost:8000", help="Interview server base URL")
    parser.add_argument("--mic-device", default=None, help="FFmpeg capture device (e.g. 'default', ':0')")
    parser.add_argument("--mic-format", default=None, help="FFmpeg input format (e.g. pulse, alsa, avfoundation)")
    parser.add_argument("--playback-device", default=None, help="FFmpeg output device for the agent's voice")
    parser.add_argument("--playback-format", default=None, help="FFmpeg output format (e.g. pulse, alsa)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


async def fetch_identity(api_base: str, session_id: str) -> SessionIdentity:
    """Load the interview plan so the session knows the questions."""
    async with aiohttp.ClientSession() as session:
        async with session.get(f"{api_base}/api/mock/{session_id}") as response:
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(f"Interview {session_id} not found: {response.status} {text}")
            data = (await response.json())["data"]

    return SessionIdentity(
        session_id=data["id"],
        candidate_name=data.get("candidateName") or "Candidate",
        company_name=data.get("companyName"),
        job_title=data.get("jobTitle"),
        questions=questions_from(data.get("questions") or []),
    )


async def run(args: argparse.Namespace) -> int:
    api_base = args.api_base.rstrip("/")
    config = TransportConfig.from_env(
        issuer_url=f"{api_base}/api/mock/realtime/session",
        mic_device=args.mic_device,
        mic_format=args.mic_format,
        playback_device=args.playback_device,
        playback_format=args.playback_format,
    )

    identity = await fetch_identity(api_base, args.session_id)
    finished = asyncio.Event()

    def on_state_change(state: ConnectionState):
        print(f"[{state.value}]")
        if state == ConnectionState.COMPLETED:
            finished.set()

    def on_transcript(entry):
        print(f"{entry.role.value:>5}: {entry.text}")

    def on_error(error: Exception):
        print(f"error: {error}")

    session = InterviewSession.create(
        identity,
        config=config,
        api_base=api_base,
        on_state_change=on_state_change,
        on_transcript=on_transcript,
        on_error=on_error,
        on_phase_change=lambda phase: print(f"--- phase: {phase.value} ---"),
        on_complete=lambda reason: print(f"Interview ended ({reason})"),
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, finished.set)
        except NotImplementedError:
            # Windows: Ctrl-C surfaces as KeyboardInterrupt instead
            pass

    try:
        await session.connect()
    except RealtimeError as e:
        logger.error(f"❌ Could not start interview: {e}")
        return 1

    print(f"Interview with {identity.candidate_name} started. Ctrl-C to stop.")
    try:
        await finished.wait()
    finally:
        await session.disconnect()

    print(f"{len(session.transcript)} transcript entries, final phase {session.phase.value}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    env_path = Path(__file__).parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
