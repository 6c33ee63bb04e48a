from __future__ import annotations
from pathlib import Path
from typing import Iterable

def uniq(seq: Iterable[str]) -> list[str]:
    seen=set(); out=[]
    for s in seq:
        if s not in seen:
            seen.add(s); out.append(s)
    return out

def load_domains(path: Path) -> list[str]:
    """Read one domain per line, skipping blanks and ``#`` comments. Order and repeats are kept."""
    return [
        t.strip()
        for t in path.read_text().splitlines()
        if t.strip() and not t.strip().startswith("#")
    ]
