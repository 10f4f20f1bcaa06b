from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TaggedNumber:
    val: int
    tag: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"val": self.val, "tag": self.tag}


@dataclass(frozen=True)
class Selection:
    """One ticket. metadata["isCandidate"] marks a pool meant for pack expansion."""

    numbers: List[TaggedNumber]
    zone2: List[TaggedNumber] = field(default_factory=list)
    group_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind = "single"

    @property
    def is_candidate(self) -> bool:
        return bool(self.metadata.get("isCandidate"))

    def values(self) -> List[int]:
        return [n.val for n in self.numbers]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"numbers": [n.to_dict() for n in self.numbers]}
        if self.zone2:
            out["zone2"] = [n.to_dict() for n in self.zone2]
        if self.group_reason:
            out["groupReason"] = self.group_reason
        out["metadata"] = dict(self.metadata)
        return out


@dataclass(frozen=True)
class Pack:
    tickets: List[Selection]

    kind = "pack"

    def __len__(self) -> int:
        return len(self.tickets)

    def to_list(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self.tickets]
