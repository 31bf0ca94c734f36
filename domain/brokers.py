"""
Broker metadata lookup.

The engine never knows which broker belongs to which group; callers
inject a BrokerDirectory built from configuration or a test table.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .enums import BrokerGroup

# Labels used by the upstream broker list
_GROUP_ALIASES = {
    "asing": BrokerGroup.FOREIGN,
    "foreign": BrokerGroup.FOREIGN,
    "lokal": BrokerGroup.DOMESTIC,
    "local": BrokerGroup.DOMESTIC,
    "domestic": BrokerGroup.DOMESTIC,
    "pemerintah": BrokerGroup.GOVERNMENT,
    "government": BrokerGroup.GOVERNMENT,
    "bumn": BrokerGroup.GOVERNMENT,
}


def parse_broker_group(value: str | BrokerGroup | None) -> BrokerGroup:
    """Map a group label ('Asing', 'BROKER_GROUP_LOCAL', 'government') to BrokerGroup."""
    if isinstance(value, BrokerGroup):
        return value
    if not value:
        return BrokerGroup.UNSPECIFIED
    label = value.strip().lower().removeprefix("broker_group_")
    return _GROUP_ALIASES.get(label, BrokerGroup.UNSPECIFIED)


@dataclass(frozen=True)
class BrokerDirectory:
    """Read-only broker code -> group mapping."""

    groups: Mapping[str, BrokerGroup] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {
            code.strip().upper(): parse_broker_group(group)
            for code, group in self.groups.items()
        }
        object.__setattr__(self, "groups", MappingProxyType(normalized))

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str | BrokerGroup]]) -> "BrokerDirectory":
        return cls(dict(pairs))

    def group_of(self, broker_code: str) -> BrokerGroup:
        """Group for a broker code; unknown codes are UNSPECIFIED."""
        return self.groups.get(broker_code.strip().upper(), BrokerGroup.UNSPECIFIED)

    def __contains__(self, broker_code: str) -> bool:
        return broker_code.strip().upper() in self.groups

    def __len__(self) -> int:
        return len(self.groups)


EMPTY_DIRECTORY = BrokerDirectory()
