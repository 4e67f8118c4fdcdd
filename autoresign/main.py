"""Process entry point: `autoresign-worker`."""

import logging
import signal
import sys
from types import FrameType
from typing import Optional

from autoresign.core.config import WorkerSettings
from autoresign.core.exceptions import ConfigurationError, GameError
from autoresign.core.logging_setup import configure_logging
from autoresign.services.worker import AutoResignWorker, WorkerContext

logger = logging.getLogger(__name__)


def install_signal_handlers(worker: AutoResignWorker) -> None:
    def _shutdown(signum: int, _frame: Optional[FrameType]) -> None:
        if worker.stopping:
            return
        logger.warning(
            "Received shutdown signal",
            extra={"meta": {"signal": signal.Signals(signum).name}},
        )
        worker.stop()

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)


def main() -> int:
    try:
        settings = WorkerSettings.from_env()
    except ConfigurationError as exc:
        configure_logging("error")
        logger.error("Refusing to start", extra={"meta": {"error": str(exc)}})
        return 1

    configure_logging(settings.log_level)
    try:
        context = WorkerContext.from_settings(settings)
    except GameError as exc:
        logger.error("Refusing to start", extra={"meta": {"error": str(exc)}})
        return 1

    worker = AutoResignWorker(context)
    install_signal_handlers(worker)
    try:
        worker.run()
    except Exception:
        logger.exception("Uncaught exception, shutting down")
        return 1
    finally:
        context.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
