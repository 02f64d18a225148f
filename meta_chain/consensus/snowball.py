"""
MetaChain - Snowball Consensus
================================
Votazione metastabile a decisione singola (famiglia Avalanche/Snowball).

Last Updated: 2026-10-17
Version: 1.0.0

Parametri:
- k (sample_size): peer interrogati per round (non imposto dall'algoritmo)
- alpha (quorum_size): soglia di quorum
- beta (decision_threshold): round consecutivi richiesti (counter > beta)

Round (tick):
1. Se done: nessun effetto
2. v* = valore più votato (pareggi: tie key minima)
   None è un valore ammesso (nessun blocco)
3. Quorum raggiunto:
   - per_value_counters[v*] += 1
   - value = v* se nessuna preferenza o per_value_counters[v*] > per_value_counters[value]
   - counter += 1 se v* == value pre-round, altrimenti counter = 1
4. Nessun quorum: counter = 0 (value invariato)
5. done = counter > beta

Varianti:
- Snowball: voti come sequenza di valori, quorum = occorrenze >= alpha
- WeightedSnowball: voti come mapping valore -> peso,
  quorum = peso >= alpha * 2 / max(len(votes), 2)
"""

import math
from collections import Counter, OrderedDict
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Hashable,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
)

from meta_chain.errors import (
    AmbiguousVoteError,
    EmptyVoteRoundError,
    InvalidConfigError,
    InvalidVoteError,
)
from meta_chain.logging_setup import get_logger
from meta_chain.utils.serialization import BYTES_LIKE


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("snowball")


V = TypeVar("V", bound=Hashable)

TieBreaker = Callable[[Any], Any]

# round senza quorum
_NO_WINNER = object()


def default_tie_key(value: Any) -> bytes:
    """
    Ordine totale per i pareggi sul valore codificato.

    - None (nessun blocco): b"" (precede ogni altro valore)
    - bytes-like: i byte stessi
    - valori con encode() che restituisce bytes (str, Transaction, Block)

    Per altri tipi serve un tie_breaker esplicito.

    Raises:
        InvalidVoteError: Valore senza codifica binaria

    Examples:
        >>> default_tie_key(b"\\x01\\x02")
        b'\\x01\\x02'
        >>> default_tie_key("R")
        b'R'
    """
    if value is None:
        return b""
    if isinstance(value, BYTES_LIKE):
        return bytes(value)

    encode = getattr(value, "encode", None)
    if callable(encode):
        encoded = encode()
        if isinstance(encoded, BYTES_LIKE):
            return bytes(encoded)

    raise InvalidVoteError(
        f"No default tie key for {type(value).__name__}, pass tie_breaker",
        code="NO_TIE_KEY",
        details={"type": type(value).__name__}
    )


def _validate_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidConfigError(
            f"{name} must be an int >= {minimum}, got {value!r}",
            code="INVALID_SNOWBALL_PARAMETER",
            details={"parameter": name, "value": value}
        )


# ============================================================================
# SNOWBALL
# ============================================================================

class Snowball(Generic[V]):
    """
    Snowball canonico: ogni round è la sequenza dei voti ricevuti.

    Attributes:
        sample_size (int): k
        quorum_size (int): alpha
        decision_threshold (int): beta
        max_tracked_values (Optional[int]): limite di per_value_counters

    Examples:
        >>> snowball = Snowball(sample_size=5, quorum_size=4, decision_threshold=3)
        >>> for _ in range(4):
        ...     done = snowball.tick(["R", "R", "R", "R", "B"])
        >>> snowball.value, snowball.counter, snowball.done
        ('R', 4, True)
    """

    def __init__(
        self,
        sample_size: int,
        quorum_size: int,
        decision_threshold: int,
        max_tracked_values: Optional[int] = None,
        tie_breaker: Optional[TieBreaker] = None
    ):
        _validate_int("sample_size", sample_size, 1)
        _validate_int("quorum_size", quorum_size, 1)
        _validate_int("decision_threshold", decision_threshold, 0)
        if max_tracked_values is not None:
            _validate_int("max_tracked_values", max_tracked_values, 1)

        if quorum_size > sample_size:
            raise InvalidConfigError(
                f"quorum_size ({quorum_size}) cannot exceed sample_size ({sample_size})",
                code="QUORUM_EXCEEDS_SAMPLE",
                details={"sample_size": sample_size, "quorum_size": quorum_size}
            )

        self._sample_size = sample_size
        self._quorum_size = quorum_size
        self._decision_threshold = decision_threshold
        self._max_tracked_values = max_tracked_values
        self._tie_key: TieBreaker = tie_breaker or default_tie_key

        self._value: Optional[V] = None
        self._has_value = False
        self._done = False
        self._counter = 0
        # ordine = ultima vittoria di quorum (più recente in fondo)
        self._per_value_counters: "OrderedDict[V, int]" = OrderedDict()

    @classmethod
    def from_settings(cls, settings=None, **kwargs) -> "Snowball":
        """
        Crea istanza dai parametri di NodeSettings.

        Args:
            settings: NodeSettings (default: get_settings())
            **kwargs: Argomenti extra (es. tie_breaker)
        """
        if settings is None:
            from meta_chain.config import get_settings
            settings = get_settings()
        return cls(**settings.snowball_parameters(), **kwargs)

    # ========================================================================
    # PROPERTIES
    # ========================================================================

    @property
    def value(self) -> Optional[V]:
        """Preferenza corrente (None anche prima del primo quorum, vedi has_value)"""
        return self._value

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def done(self) -> bool:
        return self._done

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def per_value_counters(self) -> Dict[V, int]:
        """Copia dei contatori cumulativi per valore"""
        return dict(self._per_value_counters)

    @property
    def sample_size(self) -> int:
        return self._sample_size

    @property
    def quorum_size(self) -> int:
        return self._quorum_size

    @property
    def decision_threshold(self) -> int:
        return self._decision_threshold

    @property
    def max_tracked_values(self) -> Optional[int]:
        return self._max_tracked_values

    # ========================================================================
    # ROUND
    # ========================================================================

    def tick(self, votes) -> bool:
        """
        Consuma i voti di un round.

        Args:
            votes: Voti del round (sequenza di valori)

        Returns:
            bool: done dopo il round

        Raises:
            EmptyVoteRoundError: Round senza voti
            InvalidVoteError: Voto non hashable o voti in forma di mapping
        """
        if self._done:
            return True

        winner = self._select_winner(votes)

        if winner is not _NO_WINNER:
            self._record_quorum(winner)
        else:
            self._counter = 0

        if self._counter > self._decision_threshold:
            self._done = True
            logger.info(
                "Snowball decided",
                extra_data={
                    "value": repr(self._value),
                    "counter": self._counter,
                    "tracked_values": len(self._per_value_counters),
                }
            )
        else:
            logger.debug(
                "Snowball round",
                extra_data={
                    "quorum": winner is not _NO_WINNER,
                    "value": repr(self._value),
                    "counter": self._counter,
                }
            )

        return self._done

    def _select_winner(self, votes: Sequence[V]) -> Any:
        """Valore più votato se raggiunge alpha, altrimenti _NO_WINNER"""
        if isinstance(votes, Mapping):
            raise InvalidVoteError(
                "Votes must be a sequence of values, got a mapping",
                code="INVALID_VOTES_TYPE"
            )
        try:
            counts = Counter(list(votes))
        except TypeError as e:
            raise InvalidVoteError(
                f"Votes must be an iterable of hashable values: {e}",
                code="UNHASHABLE_VOTE"
            ) from e

        if not counts:
            raise EmptyVoteRoundError(
                "Snowball round without votes",
                code="EMPTY_VOTE_ROUND"
            )

        top = max(counts.values())
        if top < self._quorum_size:
            return _NO_WINNER
        return self._break_tie([v for v, c in counts.items() if c == top])

    def _break_tie(self, candidates: List[V]) -> V:
        if len(candidates) == 1:
            return candidates[0]
        return min(candidates, key=self._tie_key)

    def _record_quorum(self, winner: V) -> None:
        previous = self._value
        had_value = self._has_value

        self._per_value_counters[winner] = self._per_value_counters.get(winner, 0) + 1
        self._per_value_counters.move_to_end(winner)

        if not had_value or (
            self._per_value_counters[winner] > self._per_value_counters.get(previous, 0)
        ):
            self._value = winner
            self._has_value = True

        if had_value and winner == previous:
            self._counter += 1
        else:
            self._counter = 1

        self._evict()

    def _evict(self) -> None:
        """Rimuove i valori con la vittoria più vecchia oltre max_tracked_values"""
        if self._max_tracked_values is None:
            return
        while len(self._per_value_counters) > self._max_tracked_values:
            for candidate in self._per_value_counters:
                if not (self._has_value and candidate == self._value):
                    del self._per_value_counters[candidate]
                    logger.debug(
                        "Snowball counter evicted",
                        extra_data={"value": repr(candidate)}
                    )
                    break

    # ========================================================================
    # STATE
    # ========================================================================

    def reset(self) -> None:
        """Riporta lo stato iniziale (parametri invariati)"""
        self._value = None
        self._has_value = False
        self._done = False
        self._counter = 0
        self._per_value_counters.clear()

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot stato + parametri"""
        return {
            "value": self._value,
            "has_value": self._has_value,
            "done": self._done,
            "counter": self._counter,
            "per_value_counters": self.per_value_counters,
            "sample_size": self._sample_size,
            "quorum_size": self._quorum_size,
            "decision_threshold": self._decision_threshold,
            "max_tracked_values": self._max_tracked_values,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"value={self._value!r}, "
            f"counter={self._counter}, "
            f"done={self._done}, "
            f"k={self._sample_size}, "
            f"alpha={self._quorum_size}, "
            f"beta={self._decision_threshold})"
        )


# ============================================================================
# WEIGHTED SNOWBALL
# ============================================================================

class WeightedSnowball(Snowball[V]):
    """
    Snowball con voti pesati: mapping valore -> peso (reale >= 0).

    Quorum relativo: peso massimo >= alpha * 2 / max(len(votes), 2).

    Round rifiutati:
    - nessun voto (EmptyVoteRoundError)
    - un solo valore distinto (AmbiguousVoteError)
    - peso negativo, NaN o infinito (InvalidVoteError)
    - pareggio sul peso massimo che raggiunge il quorum (AmbiguousVoteError)

    Examples:
        >>> snowball = WeightedSnowball(5, 4, 3)
        >>> snowball.tick({"R": 3, "G": 1, "B": 1})
        False
        >>> snowball.value
        'R'
    """

    def quorum_threshold(self, distinct_values: int) -> float:
        """Soglia di peso per un round con distinct_values valori"""
        return self._quorum_size * 2 / max(distinct_values, 2)

    def _select_winner(self, votes: Mapping[V, float]) -> Any:
        if not isinstance(votes, Mapping):
            raise InvalidVoteError(
                f"Weighted votes must be a mapping, got {type(votes).__name__}",
                code="INVALID_VOTES_TYPE"
            )
        if not votes:
            raise EmptyVoteRoundError(
                "Snowball round without votes",
                code="EMPTY_VOTE_ROUND"
            )
        if len(votes) == 1:
            raise AmbiguousVoteError(
                "Weighted round with a single distinct value",
                code="SINGLE_VALUE_ROUND"
            )

        for value, weight in votes.items():
            if (
                isinstance(weight, bool)
                or not isinstance(weight, (int, float))
                or not math.isfinite(weight)
                or weight < 0
            ):
                raise InvalidVoteError(
                    f"Invalid weight {weight!r} for value {value!r}",
                    code="INVALID_VOTE_WEIGHT",
                    details={"value": repr(value), "weight": repr(weight)}
                )

        top = max(votes.values())
        threshold = self.quorum_threshold(len(votes))
        if top < threshold:
            return _NO_WINNER

        candidates = [v for v, w in votes.items() if w == top]
        if len(candidates) > 1:
            raise AmbiguousVoteError(
                "Weighted round with a tie on the maximum weight",
                code="TIED_MAX_WEIGHT",
                details={"weight": top, "candidates": [repr(v) for v in candidates]}
            )
        return candidates[0]


__all__ = [
    "Snowball",
    "WeightedSnowball",
    "default_tie_key",
]
