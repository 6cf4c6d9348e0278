"""Command line client (register/login/logout/whoami/upload/record/list/clear)."""

from __future__ import annotations

import argparse
import getpass
import sys
import time
from collections.abc import Callable

from voice_transcriber.client.api import TranscriberClient
from voice_transcriber.client.recorder import AudioSource, MicrophoneRecorder
from voice_transcriber.client.session import ClientSession, SessionStateError
from voice_transcriber.client.storage import SessionStore
from voice_transcriber.common.config import get_settings
from voice_transcriber.common.logging import setup_client_logging
from voice_transcriber.contracts.http_api import TranscriptOut

NOT_LOGGED_IN = "Not logged in. Run `voice-transcriber login` first."


def build_parser() -> argparse.ArgumentParser:
    s = get_settings()
    parser = argparse.ArgumentParser(prog="voice-transcriber", description="Voice transcriber client")
    parser.add_argument("--base-url", default=s.client_base_url)
    parser.add_argument("--session-file", default=s.client_session_file)
    parser.add_argument("--timeout-sec", type=float, default=float(s.client_timeout_sec))
    parser.add_argument("-v", "--verbose", action="store_true", help="Log client events to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    reg = sub.add_parser("register", help="Create an account and log in")
    reg.add_argument("--username", required=True)
    reg.add_argument("--email", required=True)
    reg.add_argument("--password", help="Prompted when omitted")

    login = sub.add_parser("login", help="Log in with email and password")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted when omitted")

    sub.add_parser("logout", help="Forget the stored session")
    sub.add_parser("whoami", help="Show the logged in user")

    upload = sub.add_parser("upload", help="Upload an MP3 or WAV file")
    upload.add_argument("path")

    record = sub.add_parser("record", help="Record from the microphone and upload")
    record.add_argument(
        "--duration-sec",
        type=float,
        default=None,
        help="Stop after N seconds (default: wait for Enter)",
    )
    record.add_argument("--sample-rate", type=int, default=int(s.recorder_sample_rate))
    record.add_argument("--block-size", type=int, default=int(s.recorder_block_size))
    record.add_argument("--input-device", default=s.recorder_input_device)

    sub.add_parser("list", help="List transcriptions, newest first")
    sub.add_parser("clear", help="Delete all transcriptions")
    return parser


def _recorder_factory(args: argparse.Namespace) -> Callable[[], AudioSource]:
    def factory() -> AudioSource:
        return MicrophoneRecorder(
            sample_rate=getattr(args, "sample_rate", 16000),
            block_size=getattr(args, "block_size", 1024),
            input_device=getattr(args, "input_device", None),
        )

    return factory


def build_session(args: argparse.Namespace) -> ClientSession:
    return ClientSession(
        api=TranscriberClient(args.base_url, timeout=args.timeout_sec),
        store=SessionStore(args.session_file),
        recorder_factory=_recorder_factory(args),
    )


def _format_transcript(t: TranscriptOut) -> str:
    return f"[{t.id}] {t.created_at.isoformat()}  {t.text}"


def _fail(session: ClientSession, fallback: str) -> int:
    print(session.error or fallback, file=sys.stderr)
    return 1


def _password(args: argparse.Namespace) -> str:
    return args.password or getpass.getpass("Password: ")


def _wait_for_stop(duration_sec: float | None) -> None:
    if duration_sec:
        time.sleep(duration_sec)
        return
    input("Recording... press Enter to stop. ")


def run_command(args: argparse.Namespace, session: ClientSession) -> int:
    cmd = args.command

    if cmd in ("register", "login"):
        # новый вход заменяет сохранённую сессию
        session.logout()
        if cmd == "register":
            ok = session.register(username=args.username, email=args.email, password=_password(args))
        else:
            ok = session.login(email=args.email, password=_password(args))
        if not ok:
            return _fail(session, f"{cmd} failed")
        print(f"Logged in as {session.user.username} <{session.user.email}>")
        return 0

    if cmd == "logout":
        session.logout()
        print("Logged out")
        return 0

    if not session.restore():
        print(NOT_LOGGED_IN, file=sys.stderr)
        return 1

    if cmd == "whoami":
        print(f"{session.user.username} <{session.user.email}> id={session.user.user_id}")
        return 0

    if cmd == "upload":
        transcript = session.upload_file(args.path)
        if transcript is None:
            return _fail(session, "upload failed")
        print(transcript.text)
        return 0

    if cmd == "record":
        if not session.start_recording():
            return _fail(session, "recording failed")
        try:
            _wait_for_stop(args.duration_sec)
        except KeyboardInterrupt:
            pass
        transcript = session.stop_recording()
        if transcript is None:
            return _fail(session, "upload failed")
        print(transcript.text)
        return 0

    if cmd == "list":
        items = session.refresh()
        if session.error:
            return _fail(session, "list failed")
        if not items:
            print("No transcriptions yet.")
        for t in items:
            print(_format_transcript(t))
        return 0

    if cmd == "clear":
        if not session.clear_history():
            return _fail(session, "clear failed")
        print("Transcription history cleared")
        return 0

    raise SessionStateError(f"unknown command: {cmd}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_client_logging(verbose=args.verbose)
    return run_command(args, build_session(args))


if __name__ == "__main__":
    raise SystemExit(main())
