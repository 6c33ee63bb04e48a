"""Turn result lists into wordlists for downstream SSRF tooling."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

KINDS = ("internal", "external", "combined")


def format_hosts(hosts: Iterable[str], prepend_protocol: bool = False) -> str:
    """Newline-join ``hosts`` in their stored order.

    With ``prepend_protocol`` each host becomes two lines, ``https://host``
    then ``http://host``.
    """
    if not prepend_protocol:
        return "\n".join(hosts)
    lines: list[str] = []
    for host in hosts:
        lines.append(f"https://{host}")
        lines.append(f"http://{host}")
    return "\n".join(lines)


def export_filename(kind: str, now: Optional[datetime] = None) -> str:
    if kind not in KINDS:
        raise ValueError(f"unknown result list: {kind!r}")
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return f"surf-{kind}-{stamp.replace(':', '-').replace('.', '-')}.txt"


def write_export(
    outdir: str | Path,
    kind: str,
    hosts: Iterable[str],
    prepend_protocol: bool = False,
    now: Optional[datetime] = None,
) -> Path:
    d = Path(outdir)
    d.mkdir(parents=True, exist_ok=True)
    path = d / export_filename(kind, now)
    path.write_text(format_hosts(hosts, prepend_protocol), encoding="utf-8")
    return path
