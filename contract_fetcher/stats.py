"""Summary statistics over a contracts file."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from .classifier import chain_id_to_name
from .models import ContractRecord


@dataclass(slots=True)
class ContractStats:
    total: int = 0
    with_symbol: int = 0
    proxies: int = 0
    with_protocol: int = 0
    by_protocol: list[tuple[str, int]] = field(default_factory=list)
    by_chain: list[tuple[int, int]] = field(default_factory=list)

    def chain_lines(self) -> list[str]:
        return [f"{chain_id_to_name(chain_id)} ({chain_id}): {count}" for chain_id, count in self.by_chain]


def compute_stats(records: Iterable[ContractRecord]) -> ContractStats:
    stats = ContractStats()
    protocols: Counter[str] = Counter()
    chains: Counter[int] = Counter()
    for record in records:
        stats.total += 1
        if record.symbol is not None:
            stats.with_symbol += 1
        if record.is_proxy:
            stats.proxies += 1
        if record.protocol is not None:
            stats.with_protocol += 1
            protocols[record.protocol] += 1
        chains[record.chain_id] += 1

    # most_common keeps first-seen order among equal counts
    stats.by_protocol = protocols.most_common()
    stats.by_chain = chains.most_common()
    return stats
