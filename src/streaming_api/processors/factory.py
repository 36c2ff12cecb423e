"""Processor factory — maps ProcessorType to concrete processor classes."""

from __future__ import annotations

from streaming_api.config.models import ProcessorConfig, ProcessorType
from streaming_api.processors.base import EventsProcessor
from streaming_api.processors.log import LogEventsProcessor
from streaming_api.processors.printer import PrintEventsProcessor

_PROCESSOR_REGISTRY: dict[ProcessorType, type] = {
    ProcessorType.PRINT: PrintEventsProcessor,
    ProcessorType.LOG: LogEventsProcessor,
}


def create_processor(config: ProcessorConfig) -> EventsProcessor:
    """Create a built-in event processor from configuration."""
    cls = _PROCESSOR_REGISTRY.get(config.processor_type)
    if cls is None:
        msg = f"Unknown processor type: {config.processor_type}"
        raise ValueError(msg)
    return cls(show_body=config.show_body)  # type: ignore[no-any-return]
