# services/budget/chunking.py
from typing import Iterator, List

from services.budget.budget_planner import get_policy, BudgetClass

DEFAULT_CHUNK_SIZE = get_policy(BudgetClass.CHUNK).max_chars


def iter_chunks(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Contiguous, non-overlapping windows; the last one may be shorter."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    for start in range(0, len(text), chunk_size):
        yield text[start:start + chunk_size]


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[str]:
    return list(iter_chunks(text, chunk_size))
