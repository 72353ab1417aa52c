"""View-models and HTML rendering for the browser UI."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from .models import BlockSnapshot

_environment = Environment(
    loader=PackageLoader("otp_relay", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True, slots=True)
class ChartData:
    """Labels and values for one Chart.js chart."""

    labels: tuple[str, ...]
    values: tuple[float, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"labels": list(self.labels), "values": list(self.values)}


@dataclass(frozen=True, slots=True)
class BlockDetailsView:
    """Everything the block details page shows, already formatted."""

    snapshot: BlockSnapshot
    total_blocks: int
    block_time: str
    gas_chart: ChartData
    balance_chart: ChartData
    blocks_chart: ChartData

    @classmethod
    def build(cls, snapshot: BlockSnapshot, total_blocks: int) -> "BlockDetailsView":
        timestamp = datetime.fromtimestamp(int(snapshot.timestamp), tz=timezone.utc)
        return cls(
            snapshot=snapshot,
            total_blocks=total_blocks,
            block_time=timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"),
            gas_chart=ChartData(labels=("Gas Used",), values=(float(snapshot.gas_used),)),
            balance_chart=ChartData(
                labels=tuple(account.address for account in snapshot.accounts),
                values=tuple(float(account.balance) for account in snapshot.accounts),
            ),
            blocks_chart=ChartData(labels=("Total Blocks",), values=(float(total_blocks),)),
        )


def render_block_details(view: BlockDetailsView) -> str:
    return _environment.get_template("block_details.html").render(view=view)


def render_index() -> str:
    return _environment.get_template("index.html").render()
