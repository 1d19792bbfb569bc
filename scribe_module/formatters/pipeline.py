"""
Format pipeline

An ordered, fixed chain of stages ending in a renderer. Any stage may reject
a record, which drops it silently. The stage list is frozen at
construction; build a new pipeline to change the output format.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple, Union

from scribe_module.core.log_record import Record
from scribe_module.core.stage import BaseStage
from scribe_module.formatters.base_formatter import BaseFormatter

StageLike = Union[BaseStage, Callable[[Record], Optional[Record]]]


@dataclass(frozen=True)
class RenderedRecord:
    """
    Output of a pipeline run.

    ``record`` is the record as it left the last stage (timestamped,
    enriched); ``payload`` is the renderer's output handed to the sink.
    """

    record: Record
    payload: Any

    @property
    def level(self) -> str:
        return self.record.level


class FormatPipeline:
    """
    Run records through stages and a final renderer.

    Example:
        pipeline = FormatPipeline(
            [LevelFilter("warn", "debug"), TimestampStage()],
            JSONRenderer(),
        )
        rendered = pipeline.run(Record(level="info", message="hello"))
    """

    def __init__(self, stages: Iterable[StageLike], renderer: BaseFormatter):
        """
        Initialize pipeline.

        Args:
            stages: Stages executed in order before rendering
            renderer: Final stage producing the sink-specific form
        """
        stages = tuple(stages)
        for stage in stages:
            if not callable(stage):
                raise TypeError(f"pipeline stage is not callable: {stage!r}")
        if not callable(renderer):
            raise TypeError("renderer must be callable")

        self._stages: Tuple[StageLike, ...] = stages
        self._renderer = renderer

    @property
    def stages(self) -> Tuple[StageLike, ...]:
        return self._stages

    @property
    def renderer(self) -> BaseFormatter:
        return self._renderer

    def process(self, record: Record) -> Optional[Record]:
        """
        Run the non-rendering stages.

        Returns:
            The final record, or None if any stage rejected it
        """
        current = record
        for stage in self._stages:
            current = stage(current)
            if current is None or current is False:
                return None
        return current

    def run(self, record: Record) -> Optional[RenderedRecord]:
        """
        Run all stages and render.

        Returns:
            RenderedRecord, or None if the record was rejected
        """
        final = self.process(record)
        if final is None:
            return None
        return RenderedRecord(record=final, payload=self._renderer(final))

    def __repr__(self) -> str:
        names = ", ".join(repr(stage) for stage in self._stages)
        return f"FormatPipeline([{names}], {self._renderer!r})"
