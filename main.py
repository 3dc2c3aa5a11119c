"""
ExamGuard - Main Entry Point

Usage:
    python main.py serve                  # Start the proctoring agent API
    python main.py serve --port 8002      # Start on specific port
    python main.py watch                  # Proctor yourself with the local webcam
    python main.py watch --max-violations 3 --interval 1000 --no-audio

API Endpoints:
    POST   /sessions                 - Start proctoring an attempt
    GET    /sessions/{id}            - Current state
    POST   /sessions/{id}/focus      - Forward a browser focus event
    POST   /sessions/{id}/violations - Record a page-detected violation
    GET    /sessions/{id}/frame      - JPEG snapshot for audit
    DELETE /sessions/{id}            - End the attempt, get the report
    GET    /rules                    - Proctoring rules text
    GET    /health                   - Health check
"""
from __future__ import annotations

import argparse
import asyncio
import json


def serve(args: argparse.Namespace):
    from examguard.api.server import start_server

    print("🚀 Starting ExamGuard proctoring agent...")
    start_server(host=args.host, port=args.port)


async def watch(args: argparse.Namespace):
    """Run a session against the local webcam until disqualified or interrupted."""
    from examguard.cfg import get_settings
    from examguard.service import ProctoringSession
    from examguard.utils import describe_violation, proctoring_rules

    config = get_settings().to_proctoring_config(
        max_violations=args.max_violations,
        check_interval_ms=args.interval,
        camera_index=args.camera,
        capture_audio=False if args.no_audio else None,
    )
    disqualified = asyncio.Event()

    session = ProctoringSession(
        config,
        on_violation=lambda kind: print(f"⚠️  {describe_violation(kind)}"),
        on_disqualify=disqualified.set,
    )
    session.classifier.add_callback(
        "on_predict_end",
        lambda r: print(
            f"   face={r.face_detected} skin={r.skin_tone_ratio:.3f} "
            f"brightness={r.average_brightness:.1f} ({r.total_time_ms:.1f}ms)"
        ),
    )

    for rule in proctoring_rules(config.max_violations):
        print(f"  • {rule}")
    print()

    async with session:
        if not session.state.camera_enabled:
            print(f"❌ Camera error: {session.state.error}")
            return
        print("📹 Watching... press Ctrl+C to stop")
        try:
            await disqualified.wait()
            print("⛔ Disqualified")
        except asyncio.CancelledError:
            pass

    print(json.dumps(session.report().to_dict(), indent=2))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="ExamGuard webcam proctoring")
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_parser = sub.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=None, help="Server host")
    serve_parser.add_argument("--port", type=int, default=None, help="Server port")

    watch_parser = sub.add_parser("watch", help="Proctor a local webcam session")
    watch_parser.add_argument("--camera", type=int, default=None, help="Camera index")
    watch_parser.add_argument("--max-violations", type=int, default=None)
    watch_parser.add_argument("--interval", type=int, default=None, help="Check interval (ms)")
    watch_parser.add_argument("--no-audio", action="store_true", help="Do not open the microphone")

    args = parser.parse_args()

    from examguard.cfg import get_settings
    from examguard.utils import setup_logging
    setup_logging(args.log_level or get_settings().log_level)

    if args.command == "serve":
        serve(args)
    else:
        try:
            asyncio.run(watch(args))
        except KeyboardInterrupt:
            print("\n👋 Stopped")


if __name__ == "__main__":
    main()
