from __future__ import annotations

"""Order-1 Markov chain used to produce chat-like sentences."""

import logging
import random
from collections import Counter
from collections.abc import Iterator, Sequence
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Training tokens come from splitting on a single space, so they never contain one.
START_TOKEN = "^ start"
END_TOKEN = "end $"

DEFAULT_MAX_TOKENS = 200


class MarkovGenerationError(RuntimeError):
    """Raised when the chain cannot continue from a given context."""


class MarkovChain:
    """Maps a preceding token to the multiset of tokens observed after it.

    The chain is filled with :meth:`add` during loading and then frozen.
    A frozen chain has no writers, so handlers running in parallel may call
    :meth:`generate` on the same instance without a lock.
    """

    def __init__(self) -> None:
        self._counts: Dict[str, Counter[str]] = {}
        self._frozen: Dict[str, Tuple[Tuple[str, ...], Tuple[int, ...]]] | None = None

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def add(self, tokens: Sequence[str]) -> None:
        """Record one training line bracketed by the start and end sentinels."""

        if self._frozen is not None:
            raise RuntimeError("MarkovChain is frozen and can no longer be trained.")
        if not tokens:
            return

        line = [START_TOKEN, *tokens, END_TOKEN]
        for current, following in zip(line, line[1:]):
            self._counts.setdefault(current, Counter())[following] += 1

    def freeze(self) -> "MarkovChain":
        """Switch to the read-only form. Calling it twice is harmless."""

        if self._frozen is None:
            self._frozen = {
                context: (tuple(counter.keys()), tuple(counter.values()))
                for context, counter in self._counts.items()
            }
        return self

    def successors(self, context: str) -> Dict[str, int]:
        if self._frozen is not None:
            tokens, weights = self._frozen.get(context, ((), ()))
            return dict(zip(tokens, weights))
        return dict(self._counts.get(context, {}))

    def generate(self, context: str, rng: Optional[random.Random] = None) -> str:
        """Sample the next token after ``context``, weighted by frequency."""

        if self._frozen is not None:
            tokens, weights = self._frozen.get(context, ((), ()))
        else:
            counter = self._counts.get(context)
            tokens = tuple(counter.keys()) if counter else ()
            weights = tuple(counter.values()) if counter else ()

        if not tokens:
            raise MarkovGenerationError(f"No successors recorded for {context!r}.")

        chooser = rng if rng is not None else random
        return chooser.choices(tokens, weights=weights, k=1)[0]

    def __len__(self) -> int:
        if self._frozen is not None:
            return len(self._frozen)
        return len(self._counts)

    def __iter__(self) -> Iterator[str]:
        source = self._frozen if self._frozen is not None else self._counts
        return iter(source)

    def __contains__(self, context: object) -> bool:
        source = self._frozen if self._frozen is not None else self._counts
        return context in source


def generate_sentence(
    chain: MarkovChain,
    *,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    rng: Optional[random.Random] = None,
) -> str:
    """Walk the chain from the start sentinel until the end sentinel.

    At most ``max_tokens`` real tokens are produced. When the cap is hit the
    sentence collected so far is returned. A context without successors
    (only possible on an empty chain) raises :class:`MarkovGenerationError`.
    """

    if max_tokens < 1:
        raise ValueError("max_tokens must be positive.")

    tokens: List[str] = [START_TOKEN]
    while len(tokens) <= max_tokens:
        next_token = chain.generate(tokens[-1], rng=rng)
        if next_token == END_TOKEN:
            return " ".join(tokens[1:])
        tokens.append(next_token)

    logger.warning("Sentence generation stopped after %d tokens without an end token", max_tokens)
    return " ".join(tokens[1:])
