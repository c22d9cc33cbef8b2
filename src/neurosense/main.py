"""
Main entry point for the NeuroSense voice assessment.
"""

import argparse
import asyncio
import logging
import sys

from neurosense.assessment.form_state import FormState
from neurosense.assessment.submission import JsonFileSubmissionSink
from neurosense.config import get_settings
from neurosense.io.text_interface import TextInterface


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="neurosense")
    parser.add_argument(
        "--mode",
        choices=["text", "voice", "relay"],
        default="text",
        help="Fill in the assessment by typing, by voice, or serve the speech relay",
    )
    parser.add_argument("--patient-id", default=None, help="Patient identifier attached to the submission")
    return parser


async def run_assessment(argv: list[str] | None = None) -> None:
    """
    Run one interactive assessment.

    Initializes the form, the submission sink and the selected interface.
    """
    settings = get_settings()
    logger = logging.getLogger(__name__)
    args = build_parser().parse_args(argv)

    form = FormState()
    sink = JsonFileSubmissionSink(settings.artifacts_dir)

    if args.mode == "voice":
        from neurosense.io.voice_interface import VoiceInterface

        interface = VoiceInterface(form, sink, settings, patient_id=args.patient_id)
    else:
        interface = TextInterface(form, sink, patient_id=args.patient_id)

    logger.info(f"Starting assessment in {args.mode} mode (language={settings.language_code})")
    await interface.run()


def serve_relay() -> None:
    import uvicorn

    from neurosense.relay import create_app

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.relay_host, port=settings.relay_port)


def main() -> None:
    """Main entry point for the application."""
    setup_logging()
    argv = sys.argv[1:]

    if build_parser().parse_args(argv).mode == "relay":
        serve_relay()
        return

    try:
        asyncio.run(run_assessment(argv))
    except KeyboardInterrupt:
        print("\nAssessment terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
