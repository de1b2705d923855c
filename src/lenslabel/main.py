"""Application entry point: camera -> sampler -> worker -> classifier -> display."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lenslabel.capture.camera import CameraSource
from lenslabel.capture.gate import AuthorizationGate
from lenslabel.capture.sampler import FrameSampler
from lenslabel.config import get_settings
from lenslabel.display import ConsoleDisplay, PredictionChannel
from lenslabel.ml.image_classifier import ImageClassifier
from lenslabel.ml.inference import AnalysisWorker

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lenslabel.capture.camera import CapturedFrame
    from lenslabel.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """The wired-up components of a running application."""

    sampler: FrameSampler
    classifier: ImageClassifier
    channel: PredictionChannel
    worker: AnalysisWorker
    display: ConsoleDisplay


def build_pipeline(settings: Settings) -> Pipeline:
    """Create the classifier, worker and display from settings."""
    classifier = ImageClassifier(settings)
    channel = PredictionChannel()
    display = ConsoleDisplay()
    channel.subscribe(display)
    return Pipeline(
        sampler=FrameSampler(settings.sample_interval),
        classifier=classifier,
        channel=channel,
        worker=AnalysisWorker(classifier, channel),
        display=display,
    )


def feed_frames(frames: Iterable[CapturedFrame], sampler: FrameSampler, worker: AnalysisWorker) -> None:
    """Apply the sampling decision to each frame and release it right after."""
    for frame in frames:
        with frame:
            if sampler.should_sample(frame.marker):
                worker.offer(frame.image.copy())


def run(settings: Settings | None = None) -> int:
    """Run the capture loop until the camera stops or the user interrupts."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting LensLabel (model=%s, labels=%s, device=%s, sample_interval=%s)",
        settings.model_path,
        settings.labels_path,
        settings.device,
        settings.sample_interval,
    )

    gate = AuthorizationGate()
    gate.on_authorization(settings.camera_authorized)

    pipeline = build_pipeline(settings)
    camera = CameraSource(settings.camera_index, settings.sample_marker)
    result = camera.open(gate)
    if not result.ok:
        logger.error("Camera setup failed (%s): %s", result.error, result.message)
        pipeline.worker.shutdown()
        return 1

    gate.start()
    logger.info("LensLabel running")
    try:
        feed_frames(camera.frames(), pipeline.sampler, pipeline.worker)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        logger.info("Shutting down LensLabel")
        camera.close()
        pipeline.worker.shutdown()
        logger.info(
            "LensLabel shutdown complete (sampled=%d, dropped=%d, superseded=%d)",
            pipeline.sampler.sampled_count,
            pipeline.sampler.dropped_count,
            pipeline.worker.dropped_count,
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
