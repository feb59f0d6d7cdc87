"""Battle detection over room hit streams."""

from domain.battles.segmentation import (
    Battle,
    BattleSegmenter,
    ParticipantStats,
    SegmentationParameters,
    detect_battles,
    room_key,
)

__all__ = [
    "Battle",
    "BattleSegmenter",
    "ParticipantStats",
    "SegmentationParameters",
    "detect_battles",
    "room_key",
]
