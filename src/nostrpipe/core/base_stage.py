"""
Abstract base class for pipeline stages and the context threaded through them.

Every stage is a small object with a declared input and output payload type
and one coroutine, [run()][nostrpipe.core.base_stage.Stage.run], that maps
the previous stage's output to its own. Stages keep no state between runs:
everything a stage needs from the outside world (relay connection, output
sink, connector for other relays) comes from the immutable
[PipelineContext][nostrpipe.core.base_stage.PipelineContext].

See Also:
    [Pipeline][nostrpipe.stages.pipeline.Pipeline]: Chains stages, checks
        their payload types at build time, and runs them in order.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, BinaryIO, ClassVar

from nostrpipe.models.constants import StageName

from .logger import Logger


if TYPE_CHECKING:
    from nostrpipe.utils.protocol import RelayConnection


Connector = Callable[[str, float], Awaitable["RelayConnection"]]


def _stdout() -> BinaryIO:
    return sys.stdout.buffer


@dataclass(frozen=True, slots=True)
class PipelineContext:
    """Immutable per-run context passed explicitly to every stage.

    Attributes:
        connection: Open relay connection used by the query stage and, by
            default, the publish stage. ``None`` for pipelines that never
            touch a relay.
        output: Binary sink receiving the rendered result.
        connector: Coroutine ``(url, timeout) -> RelayConnection`` used by
            stages that need a connection to another relay. Defaults to
            [connect_relay()][nostrpipe.utils.protocol.connect_relay].
        timeout: Seconds passed to every relay operation.
    """

    connection: RelayConnection | None = None
    output: BinaryIO = field(default_factory=_stdout)
    connector: Connector | None = None
    timeout: float = 10.0


class Stage(ABC):
    """Abstract base class for all pipeline stages.

    Subclasses set ``NAME`` (used in logs and the ``stage`` metric label),
    ``INPUT`` (payload types accepted from the previous stage; empty for a
    source stage that starts a pipeline), and ``OUTPUT`` (payload type
    produced), and implement [run()][nostrpipe.core.base_stage.Stage.run].

    Note:
        Stages must not mutate their input payload. All models are frozen,
        so a stage that needs a different value builds a new one.
    """

    NAME: ClassVar[StageName]
    INPUT: ClassVar[tuple[type, ...]]
    OUTPUT: ClassVar[type]

    def __init__(self) -> None:
        self._logger = Logger("pipeline").bind(stage=str(self.NAME))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    @classmethod
    def is_source(cls) -> bool:
        """Whether the stage starts a pipeline (takes no input payload)."""
        return not cls.INPUT

    @classmethod
    def accepts(cls, payload_type: type) -> bool:
        """Whether a payload of *payload_type* is valid input for this stage."""
        return any(issubclass(payload_type, accepted) for accepted in cls.INPUT)

    @abstractmethod
    async def run(self, context: PipelineContext, payload: Any) -> Any:
        """Transform *payload* (``None`` for source stages) into ``OUTPUT``."""
        ...
