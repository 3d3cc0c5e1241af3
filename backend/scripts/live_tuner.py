import argparse
import os
import sys
import time

backend_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.append(backend_root)

import sounddevice as sd

from pitchwiz.core.config import settings
from pitchwiz.core.logging import setup_logging
from pitchwiz.schemas.pitch import PitchFrame
from pitchwiz.services.frame_worker import FrameWorker
from pitchwiz.services.pipeline import PitchPipeline
import logging

logger = logging.getLogger("live_tuner")


def print_frame(frame: PitchFrame):
    if frame.note_id is None:
        print("  --", end="\r", flush=True)
        return
    print(f"  {frame.note_id:<4} {frame.frequency_hz:7.1f} Hz  {frame.cents_deviation:+4.0f} cents", end="\r", flush=True)


def main():
    parser = argparse.ArgumentParser(description="Listen to the microphone and show the sung note.")
    parser.add_argument("--seconds", type=float, default=10.0, help="How long to record")
    parser.add_argument("--device", default=None, help="Input device name or index")
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)
    config = settings.pitch_config()
    pipeline = PitchPipeline(config)
    pipeline.subscribe(print_frame)
    worker = FrameWorker(pipeline)

    def callback(indata, frames, time_info, status):
        if status:
            logger.warning(f"Input status: {status}")
        worker.submit(indata[:, 0])

    worker.start()
    pipeline.start_session()
    print(f"Sing! Recording for {args.seconds:.0f}s...")
    try:
        with sd.InputStream(
            samplerate=config.sample_rate,
            blocksize=config.frame_size,
            channels=1,
            dtype="float32",
            device=args.device,
            callback=callback,
        ):
            time.sleep(args.seconds)
    except KeyboardInterrupt:
        pass
    finally:
        worker.stop()

    report = pipeline.finish_session()
    print()
    print(report.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
