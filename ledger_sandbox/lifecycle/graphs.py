"""
Transition graphs for lifecycle entities and shortest-path search over them.

Each graph maps a state to the ordered list of states directly reachable
from it. Terminal states map to an empty list. Edge order is significant:
BFS returns the first shortest path in insertion order.
"""

from collections import deque
from typing import Dict, List, Optional

from ledger_sandbox.models.documents import EntityType

TransitionGraph = Dict[str, List[str]]

INVOICE_TRANSITIONS: TransitionGraph = {
    "DRAFT": ["SUBMITTED", "AUTHORISED", "VOIDED"],
    "SUBMITTED": ["AUTHORISED", "DRAFT", "VOIDED"],
    "AUTHORISED": ["PAID", "VOIDED"],
    "PAID": [],
    "VOIDED": [],
}

QUOTE_TRANSITIONS: TransitionGraph = {
    "DRAFT": ["SENT", "DECLINED"],
    "SENT": ["ACCEPTED", "DECLINED", "DRAFT"],
    "ACCEPTED": ["INVOICED", "DECLINED"],
    "DECLINED": ["DRAFT"],
    "INVOICED": [],
}

CREDIT_NOTE_TRANSITIONS: TransitionGraph = {
    "DRAFT": ["SUBMITTED", "AUTHORISED", "VOIDED"],
    "SUBMITTED": ["AUTHORISED", "DRAFT", "VOIDED"],
    "AUTHORISED": ["PAID", "VOIDED"],
    "PAID": [],
    "VOIDED": [],
}

TRANSITION_GRAPHS: Dict[str, TransitionGraph] = {
    EntityType.INVOICE.value: INVOICE_TRANSITIONS,
    EntityType.QUOTE.value: QUOTE_TRANSITIONS,
    EntityType.CREDIT_NOTE.value: CREDIT_NOTE_TRANSITIONS,
}

PAYMENT_STATE = "PAID"
INVOICED_STATE = "INVOICED"


def find_transition_path(graph: TransitionGraph, start: str, target: str) -> Optional[List[str]]:
    """
    Breadth-first search from start to target.

    Returns the full path including both endpoints, [start] when they are
    equal, or None when target is unreachable.
    """
    if start == target:
        return [start]

    visited = {start}
    queue = deque([[start]])
    while queue:
        path = queue.popleft()
        for next_state in graph.get(path[-1], []):
            if next_state in visited:
                continue
            next_path = path + [next_state]
            if next_state == target:
                return next_path
            visited.add(next_state)
            queue.append(next_path)
    return None
