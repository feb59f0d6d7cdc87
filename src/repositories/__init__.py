"""Input and output repositories for hit-log builds."""

from repositories.artifact_repository import ArtifactRepository
from repositories.hit_log_repository import (
    DEFAULT_HIT_LOG_URL,
    fetch_hit_log,
    fetch_hit_log_text,
    load_json_mapping,
    parse_hit_log_csv,
    read_hit_log,
)

__all__ = [
    "ArtifactRepository",
    "DEFAULT_HIT_LOG_URL",
    "fetch_hit_log",
    "fetch_hit_log_text",
    "load_json_mapping",
    "parse_hit_log_csv",
    "read_hit_log",
]
