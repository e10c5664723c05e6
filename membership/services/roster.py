# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster invariant — pure computation, no side effects.
"""


def formal_headcount(vice_leader_count: int, member_count: int) -> int:
    return vice_leader_count + member_count


def is_roster_complete(vice_leader_count: int, member_count: int, expected_size: int) -> bool:
    """
    True iff the formal roster holds exactly `expected_size` people.
    A gate, not a fixer: callers abort the enclosing write on False.
    """
    return formal_headcount(vice_leader_count, member_count) == expected_size
