from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

GAME_TYPES = ("lotto", "power", "digit", "today")


@dataclass(frozen=True)
class GameDefinition:
    name: str
    type: str
    range: int
    count: int
    zone2: Optional[int] = None
    special: bool = False
    draw_days: Tuple[int, ...] = ()  # 0 = Sunday

    def __post_init__(self):
        if self.type not in GAME_TYPES:
            raise ValueError(f"Unknown game type: {self.type}")
        if self.count > self.range:
            raise ValueError(f"{self.name}: count {self.count} exceeds range {self.range}")

    @property
    def min_value(self) -> int:
        return 0 if self.type == "digit" else 1


DA_LE_TOU = GameDefinition(name="大樂透", type="lotto", range=49, count=6, special=True, draw_days=(2, 5))
WEI_LI_CAI = GameDefinition(name="威力彩", type="power", range=38, count=6, zone2=8, draw_days=(1, 4))
JIN_CAI_539 = GameDefinition(name="今彩539", type="lotto", range=39, count=5, draw_days=(1, 2, 3, 4, 5, 6))
SAN_XING_CAI = GameDefinition(name="3星彩", type="digit", range=9, count=3, draw_days=(1, 2, 3, 4, 5, 6))
SI_XING_CAI = GameDefinition(name="4星彩", type="digit", range=9, count=4, draw_days=(1, 2, 3, 4, 5, 6))

GAME_ORDER = [DA_LE_TOU, WEI_LI_CAI, JIN_CAI_539, SAN_XING_CAI, SI_XING_CAI]

GAMES: Dict[str, GameDefinition] = {g.name: g for g in GAME_ORDER}


def get_game(name: str) -> Optional[GameDefinition]:
    return GAMES.get(name)
