import logging
from typing import Any, Callable, List, Optional, Tuple

from ..core.types import TranscriptEntry, TranscriptRole
from ..protocol.events import AgentTranscriptDone, UserTranscriptDone

logger = logging.getLogger(__name__)


class TranscriptAssembler:
    """
    Append-only log of finalized utterances.

    Only transcript-complete events are recorded; partial/delta events
    never reach this class.
    """

    def __init__(self, on_append: Optional[Callable[[TranscriptEntry], Any]] = None):
        self._entries: List[TranscriptEntry] = []
        self._on_append = on_append

    @property
    def entries(self) -> Tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def handle(self, event: Any) -> Optional[TranscriptEntry]:
        """Append an entry for a transcript-complete event, ignore anything else."""
        if isinstance(event, AgentTranscriptDone):
            role = TranscriptRole.AGENT
        elif isinstance(event, UserTranscriptDone):
            role = TranscriptRole.USER
        else:
            return None

        text = event.transcript.strip()
        if not text:
            return None
        return self.append(role, text)

    def append(self, role: TranscriptRole, text: str) -> TranscriptEntry:
        entry = TranscriptEntry(role=role, text=text)
        self._entries.append(entry)
        logger.info(f"📝 [{role.value}] {text[:80]}")
        if self._on_append is not None:
            self._on_append(entry)
        return entry

    def to_list(self) -> List[dict]:
        return [entry.to_dict() for entry in self._entries]
