"""Short, human-friendly match id generation."""

from dataclasses import dataclass
from typing import Container, Optional
import random
import string

from durak.errors import MatchIdExhausted

DEFAULT_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class RegistryConfig:
    """
    Immutable registry settings.

    Attributes:
        match_id_length: Length of a normal match id
        match_id_alphabet: Characters match ids are drawn from
        max_id_attempts: Tries per id length before giving up on it
        fallback_id_length: Length used once the short id space keeps colliding
    """

    match_id_length: int = 6
    match_id_alphabet: str = DEFAULT_ALPHABET
    max_id_attempts: int = 10
    fallback_id_length: int = 12


def generate_match_id(
    taken: Container[str],
    config: Optional[RegistryConfig] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Generate a match id not present in ``taken``.

    Tries ``max_id_attempts`` ids of the normal length, then as many of the
    fallback length.

    Args:
        taken: Ids currently in use
        config: Registry settings
        rng: Random source

    Returns:
        A free match id

    Raises:
        MatchIdExhausted: If every attempt collided
    """
    config = config or RegistryConfig()
    rng = rng or random

    for length in (config.match_id_length, config.fallback_id_length):
        for _ in range(config.max_id_attempts):
            match_id = "".join(
                rng.choice(config.match_id_alphabet) for _ in range(length)
            )
            if match_id not in taken:
                return match_id

    raise MatchIdExhausted(
        f"No free match id after {2 * config.max_id_attempts} attempts"
    )
