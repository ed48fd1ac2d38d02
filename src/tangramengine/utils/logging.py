"""Logging utilities for Tangram Engine.

Core modules log through the standard library (``logging.getLogger(__name__)``)
and the editor logs through structlog. ``configure_logging`` sends both to the
same handlers: JSON lines in the log file, readable lines on the console.
"""

import logging
from dataclasses import dataclass, field

import structlog

from tangramengine.config import LoggingConfig

_HANDLER_NAME = "tangramengine"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


@dataclass
class EditorStats:
    """Counters collected over an editing session."""

    placements: int = 0
    rejected_placements: int = 0
    rejected_transitions: int = 0
    removals: int = 0
    rejected_removals: int = 0
    validations: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def total_rejections(self) -> int:
        return self.rejected_placements + self.rejected_transitions + self.rejected_removals


def _handler(
    handler: logging.Handler,
    level: str,
    renderer: structlog.types.Processor,
) -> logging.Handler:
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(logging.getLevelName(level.upper()))
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(
    config: LoggingConfig,
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Route engine logs to the configured file and the console.

    Handlers installed by an earlier call are replaced, so the CLI may be
    invoked repeatedly in one process.

    Args:
        config: Log file and levels
        quiet: If True, install no console handler

    Returns:
        Logger bound to the ``tangramengine`` name
    """
    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(handler)
        handler.close()

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        root_logger.addHandler(
            _handler(file_handler, config.file_log_level, structlog.processors.JSONRenderer())
        )
    if not quiet:
        root_logger.addHandler(
            _handler(
                logging.StreamHandler(),
                config.log_level,
                structlog.dev.ConsoleRenderer(colors=False),
            )
        )
    root_logger.setLevel(logging.DEBUG)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logger = structlog.get_logger("tangramengine")
    logger.info(
        "Logging configured",
        log_file=str(config.log_file) if config.log_file else None,
        file_level=config.file_log_level,
    )
    return logger


class EditorLogger:
    """Logger for editor events that also keeps session statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger if logger is not None else structlog.get_logger("tangramengine.editor")
        self._stats = EditorStats()

    def log_transition(self, previous: str, current: str) -> None:
        """Log an accepted state transition."""
        self._logger.debug("State transition", previous=previous, current=current)

    def log_transition_rejected(self, current: str, requested: str) -> None:
        """Log a rejected state transition."""
        self._logger.warning("Transition rejected", current=current, requested=requested)
        self._stats.rejected_transitions += 1

    def log_placement(self, piece_id: str, piece_type: str, connections: int) -> None:
        """Log a committed placement."""
        self._logger.info(
            "Piece placed",
            piece=piece_id,
            piece_type=piece_type,
            connections=connections,
        )
        self._stats.placements += 1

    def log_placement_rejected(self, piece_type: str, reason: str) -> None:
        """Log a rejected placement."""
        self._logger.info("Placement rejected", piece_type=piece_type, reason=reason)
        self._stats.rejected_placements += 1
        self._stats.errors.append((piece_type, reason))

    def log_removal(self, piece_id: str, removed_connections: int) -> None:
        self._logger.info("Piece removed", piece=piece_id, connections=removed_connections)
        self._stats.removals += 1

    def log_removal_rejected(self, piece_id: str, reason: str) -> None:
        self._logger.info("Removal rejected", piece=piece_id, reason=reason)
        self._stats.rejected_removals += 1
        self._stats.errors.append((piece_id, reason))

    def log_validation(self, is_valid: bool, error_count: int) -> None:
        """Log a whole-puzzle validation."""
        self._logger.debug("Puzzle validated", valid=is_valid, errors=error_count)
        self._stats.validations += 1

    @property
    def stats(self) -> EditorStats:
        """Get current session statistics."""
        return self._stats
