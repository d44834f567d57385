import argparse
import asyncio
import sys

from ugcvideo.models.video_schema import VideoFormData, SubmitResult
from ugcvideo.services.orchestrator import VideoSubmissionOrchestrator
from ugcvideo.utils.logger import get_logger


logger = get_logger("submit-once")


def _print_state(result: SubmitResult | None) -> None:
    if result is None:
        return
    logger.info("state → %s", result.message)
    for field, msg in result.field_errors.items():
        logger.error("  %s: %s", field, msg)


async def run(form: VideoFormData) -> int:
    orch = VideoSubmissionOrchestrator(on_change=_print_state)
    session_id = await orch.submit(form)
    if session_id is None:
        return 1
    await orch.poller.wait()
    result = orch.result
    if result is None or not result.success:
        return 1
    if result.video_url:
        print(result.video_url)
    else:
        print(result.response or "")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Submit one video request and wait for the result.")
    p.add_argument("--duration", default="24")
    p.add_argument("--description", required=True)
    p.add_argument("--image-url", required=True)
    p.add_argument("--gender", required=True, choices=["male", "female", "neutral"])
    args = p.parse_args(argv)
    form = VideoFormData(
        duration=args.duration,
        product_description=args.description,
        image_url=args.image_url,
        character_gender=args.gender,
    )
    return asyncio.run(run(form))


if __name__ == "__main__":
    sys.exit(main())
