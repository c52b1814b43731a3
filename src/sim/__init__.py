from .replay import run_replay
from .scenarios import (
    REPLAY_KEYS,
    ReplayConfig,
    get_replay_config,
    replay_from_dict,
    replay_to_dict,
)

__all__ = [
    "REPLAY_KEYS",
    "ReplayConfig",
    "get_replay_config",
    "replay_from_dict",
    "replay_to_dict",
    "run_replay",
]
