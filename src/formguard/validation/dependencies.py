"""Dependent-property discovery.

A property P depends on Q when one of P's rules holds a comparison
component whose target member is Q. When Q changes, P's fields must be
revalidated as well.
"""

from collections.abc import Iterable

from formguard.validation.rules import ComparableRule, comparison_targets


def dependents_of(rule_set: Iterable[ComparableRule], changed_property: str) -> set[str]:
    """Properties whose rules compare against ``changed_property``.

    Matching is exact (ordinal) string equality. Not cached; rule sets are
    small and this is recomputed on every call.

    Args:
        rule_set: Rules to scan (a RuleSet or any iterable of rules)
        changed_property: The property that just changed

    Returns:
        Set of dependent property names; empty when nothing compares
        against ``changed_property``.
    """
    dependents: set[str] = set()
    for rule in rule_set:
        if changed_property in comparison_targets(rule.components):
            dependents.add(rule.property_name)
    return dependents


def dependency_map(rule_set: Iterable[ComparableRule]) -> dict[str, set[str]]:
    """Map every compared-against property to its dependents.

    Equivalent to calling dependents_of for each comparison target.
    """
    graph: dict[str, set[str]] = {}
    for rule in rule_set:
        for target in comparison_targets(rule.components):
            graph.setdefault(target, set()).add(rule.property_name)
    return graph


def find_cycles(rule_set: Iterable[ComparableRule]) -> list[list[str]]:
    """Find comparison cycles (e.g. start <= end and end >= start).

    Returns each cycle once, as the list of properties along it starting
    from its alphabetically smallest member. Self-comparisons count as
    cycles of length one.
    """
    graph = dependency_map(rule_set)
    cycles: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()

    def walk(node: str, path: list[str]) -> None:
        for nxt in sorted(graph.get(node, ())):
            if nxt == path[0]:
                start = path.index(min(path))
                key = tuple(path[start:] + path[:start])
                if key not in seen:
                    seen.add(key)
                    cycles.append(list(key))
            elif nxt not in path and nxt > path[0]:
                walk(nxt, path + [nxt])

    for origin in sorted(graph):
        walk(origin, [origin])

    return cycles
