"""
Secret Santa Pairing Module - Random Disjoint Pairs

RESPONSIBILITIES:
- Fisher-Yates shuffle with an injectable random source
- Pair generation (giver -> receiver) from a roster snapshot
- Result (de)serialization for the store

ALGORITHM MECHANICS:
1. Deduplicate the input by key (never trust the caller)
2. Fewer than 2 people: nothing to pair, no randomness used
3. Shuffle a copy of the roster uniformly at random
4. Walk the shuffle two at a time: pool[2k] gives to pool[2k + 1]
5. Odd count: the trailing person is the single unmatched entry

Pairs are disjoint, not a gift cycle: N people give at most N // 2 pairs.
Nobody can draw themselves because the two slots of a pair always hold two
different, already deduplicated people, so no retry loop is needed.

RANDOMNESS:
Defaults to secrets.SystemRandom() (OS entropy, no seeding). Tests pass
random.Random(seed) or any object with randrange() for reproducible draws.
"""

import secrets
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .secret_santa_roster import Participant, deduplicate

_system_random = secrets.SystemRandom()


@dataclass(frozen=True)
class Pair:
    giver: Participant
    receiver: Participant

    def to_dict(self) -> dict:
        return {"giver": self.giver.to_dict(), "receiver": self.receiver.to_dict()}


@dataclass
class PairingResult:
    pairs: List[Pair] = field(default_factory=list)
    unmatched: List[Participant] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "pairs": [pair.to_dict() for pair in self.pairs],
            "unmatched": [p.to_dict() for p in self.unmatched],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["PairingResult"]:
        """Rebuild a stored result; malformed pairs/entries are dropped"""
        if not isinstance(data, dict):
            return None

        pairs = []
        raw_pairs = data.get("pairs")
        for raw in raw_pairs if isinstance(raw_pairs, list) else []:
            if not isinstance(raw, dict):
                continue
            giver = Participant.from_dict(raw.get("giver"))
            receiver = Participant.from_dict(raw.get("receiver"))
            if giver and receiver and giver.key != receiver.key:
                pairs.append(Pair(giver, receiver))

        raw_unmatched = data.get("unmatched")
        unmatched = [
            p for p in (Participant.from_dict(u) for u in
                        (raw_unmatched if isinstance(raw_unmatched, list) else []))
            if p
        ]

        return cls(pairs=pairs, unmatched=unmatched[:1])


def shuffle_participants(participants: Sequence[Participant], rng=None) -> List[Participant]:
    """
    Fisher-Yates shuffle on a copy.

    For i from the last index down to 1, swap with a uniform j in [0, i],
    so every permutation is equally likely given an unbiased rng.
    """
    rng = rng or _system_random
    pool = list(participants)

    for i in range(len(pool) - 1, 0, -1):
        j = rng.randrange(i + 1)
        pool[i], pool[j] = pool[j], pool[i]

    return pool


def generate_pairs(participants: Sequence[Participant], rng=None) -> PairingResult:
    """
    Create random giver -> receiver pairs.

    Args:
        participants: Roster snapshot (may contain duplicates)
        rng: Optional random source with randrange(); defaults to SystemRandom

    Returns:
        PairingResult with floor(n / 2) pairs and 0 or 1 unmatched participants
    """
    unique = deduplicate(participants)

    if len(unique) < 2:
        return PairingResult(pairs=[], unmatched=list(unique))

    pool = shuffle_participants(unique, rng)

    pairs = []
    unmatched = []
    for i in range(0, len(pool), 2):
        if i + 1 >= len(pool):
            unmatched = [pool[i]]
            break
        pairs.append(Pair(giver=pool[i], receiver=pool[i + 1]))

    return PairingResult(pairs=pairs, unmatched=unmatched)


__all__ = ['Pair', 'PairingResult', 'shuffle_participants', 'generate_pairs']
