"""Fair-share factor per account from ``sshare``."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from .command import run
from .exposition import Collector, Desc, Metric, const_metric


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def fairshare_data() -> str:
    return run("sshare", ["-n", "-a", "-U", "-P", "-o", "user,fairshare"])


def parse_fairshare_metrics(text: str) -> dict[str, float]:
    """Parse ``name|fairshare`` lines; lines indented by two spaces are skipped."""
    accounts: dict[str, float] = {}
    for line in text.split("\n"):
        if line.startswith("  ") or "|" not in line:
            continue
        parts = line.split("|")
        accounts[parts[0].strip(" ")] = _parse_float(parts[1])
    return accounts


class FairShareCollector(Collector):
    def __init__(self, source: Callable[[], str] = fairshare_data) -> None:
        self._source = source
        self.fairshare = Desc(
            "slurm_account_fairshare", "FairShare for account", ("account",)
        )

    def describe(self) -> Iterator[Desc]:
        yield self.fairshare

    def collect(self) -> Iterator[Metric]:
        for account, value in parse_fairshare_metrics(self._source()).items():
            yield const_metric(self.fairshare, value, account)