"""Static roster of monitored brand endpoints."""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_PORT = 20000

# Built-in roster: brand -> {host, port, primary_ip, secondary_ip}
DEFAULT_BRANDS: Dict[str, Dict] = {
    "Bareeze": {"host": "barz.eastgateindustries.com", "port": DEFAULT_PORT,
                "primary_ip": "122.129.92.25", "secondary_ip": "202.59.94.86"},
    "Bareeze Men": {"host": "bman.eastgateindustries.com", "port": DEFAULT_PORT,
                    "primary_ip": "122.129.92.26", "secondary_ip": "202.59.94.92"},
    "Chineyere": {"host": "chny.eastgateindustries.com", "port": DEFAULT_PORT,
                  "primary_ip": "122.129.92.28", "secondary_ip": "202.59.94.88"},
    "Mini Minor": {"host": "mmnr.eastgateindustries.com", "port": DEFAULT_PORT,
                   "primary_ip": "122.129.92.29", "secondary_ip": "202.59.94.87"},
    "Rangja": {"host": "rnja.eastgateindustries.com", "port": DEFAULT_PORT,
               "primary_ip": "122.129.92.30", "secondary_ip": "202.59.94.91"},
    "The Entertainer": {"host": "te.eastgateindustries.com", "port": DEFAULT_PORT,
                        "primary_ip": "122.129.92.32", "secondary_ip": "202.59.94.93"},
}


class Role(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def label(self) -> str:
        """Human readable role name used in alerts."""
        return "Brain Net IP" if self is Role.PRIMARY else "Live IP"


EndpointId = Tuple[str, Role]


@dataclass(frozen=True)
class Endpoint:
    """A single (brand, role, host, port) monitoring target."""

    brand: str
    role: Role
    host: Optional[str]
    port: int

    @property
    def id(self) -> EndpointId:
        return (self.brand, self.role)

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def to_dict(self) -> Dict:
        return {
            "brand": self.brand,
            "role": self.role.value,
            "role_label": self.role.label,
            "host": self.host,
            "port": self.port,
        }


@dataclass(frozen=True)
class Brand:
    name: str
    host: str
    port: int


def _validate_port(brand: str, port) -> int:
    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise ValueError(f"Invalid port for brand {brand!r}: {port!r}")
    return port


class TargetRegistry:
    """Immutable brand -> {primary, secondary} endpoint mapping.

    Iteration order follows the roster order: brand by brand, primary
    before secondary.
    """

    def __init__(self, brands: Dict[str, Dict]):
        self._brands: Dict[str, Brand] = {}
        self._endpoints: Dict[EndpointId, Endpoint] = {}

        for name, entry in brands.items():
            port = _validate_port(name, entry.get("port", DEFAULT_PORT))
            self._brands[name] = Brand(name=name, host=entry.get("host") or "", port=port)

            for role, key in ((Role.PRIMARY, "primary_ip"), (Role.SECONDARY, "secondary_ip")):
                # Empty string means the role does not apply to this brand
                host = (entry.get(key) or "").strip() or None
                endpoint = Endpoint(brand=name, role=role, host=host, port=port)
                self._endpoints[endpoint.id] = endpoint
                if host is None:
                    logger.info("Brand %s has no %s configured", name, role.label)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints.values())

    def __len__(self) -> int:
        return len(self._endpoints)

    @property
    def brand_names(self) -> List[str]:
        return list(self._brands)

    def get_brand(self, name: str) -> Optional[Brand]:
        return self._brands.get(name)

    def get(self, endpoint_id: EndpointId) -> Endpoint:
        return self._endpoints[endpoint_id]

    def endpoints_for(self, brand: str) -> List[Endpoint]:
        return [e for e in self._endpoints.values() if e.brand == brand]


def load_registry(path: Optional[Path] = None) -> TargetRegistry:
    """Build the registry from a JSON roster file or the built-in roster.

    Args:
        path: Optional JSON file with the same shape as DEFAULT_BRANDS.

    Returns:
        Loaded TargetRegistry.
    """
    if path is None:
        return TargetRegistry(DEFAULT_BRANDS)

    with open(path, encoding="utf-8") as f:
        brands = json.load(f)

    if not isinstance(brands, dict):
        raise ValueError(f"Roster file {path} must contain a JSON object")

    logger.info("Loaded %d brands from %s", len(brands), path)
    return TargetRegistry(brands)
