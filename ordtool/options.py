"""Options shared by every command."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .byte_size import ByteSize

DEFAULT_INDEX_SIZE = "1MiB"


@dataclass(frozen=True)
class Options:
    """Index size limit and how to reach the node's RPC interface."""

    index_size: ByteSize = field(default_factory=lambda: ByteSize.parse(DEFAULT_INDEX_SIZE))
    cookie_file: Path | None = None
    rpc_url: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.index_size, str):
            object.__setattr__(self, "index_size", ByteSize.parse(self.index_size))
        elif not isinstance(self.index_size, ByteSize):
            object.__setattr__(self, "index_size", ByteSize(int(self.index_size)))
        if self.cookie_file is not None:
            object.__setattr__(self, "cookie_file", Path(self.cookie_file))