"""Transitive closure of the implies graph, as per-tag bitsets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagguard.core.registry import iter_bits

if TYPE_CHECKING:
    from tagguard.core.rules import RuleSet

Closure = tuple[int, ...]


def compute_closure(ruleset: RuleSet) -> Closure:
    """Return ``closure[i]``: the bitset of every tag reachable from tag *i*.

    Each entry includes the tag itself.  Closures are memoized, so a shared
    descendant is expanded once no matter how many tags reach it.  The
    implies graph must be acyclic (see :func:`tagguard.core.checks.find_cycles`).
    """
    adj = ruleset.implies
    size = len(ruleset.registry)
    memo: list[int] = [0] * size

    for start in range(size):
        if memo[start]:
            continue
        on_path = {start}
        path = [start]
        stack = [iter(adj.get(start, ()))]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                node = path.pop()
                on_path.discard(node)
                mask = 1 << node
                for implied in adj.get(node, ()):
                    mask |= memo[implied]
                memo[node] = mask
                continue
            if child in on_path:
                msg = "implies graph is cyclic; run the static checks first"
                raise ValueError(msg)
            if not memo[child]:
                on_path.add(child)
                path.append(child)
                stack.append(iter(adj.get(child, ())))

    return tuple(memo)


def expand(closure: Closure, mask: int) -> int:
    """Union the closures of every tag in *mask*."""
    effective = mask
    for tag_id in iter_bits(mask):
        effective |= closure[tag_id]
    return effective
