"""
Fritz!Box mesh topology model.

Overview
────────
This module is the leaf of the data layer.  It has two responsibilities:

  1. **Data classes** – Frozen dataclasses that mirror one mesh snapshot:
       MeshDevice     – any node in the snapshot (master, repeater or client)
       MeshInterface  – one network attachment point of a device
       MeshLink       – one edge between two (device, interface) endpoints
       MeshTopology   – the root container plus a lazily built uid index

  2. **Parsing** – parse_mesh_topology() converts the raw JSON dict returned
     by fritzconnection into the typed model above without reshaping it.
     The graph is kept exactly as the Fritz!Box reports it; path resolution
     happens in mesh_path.py.

Fritz!Box mesh topology JSON structure (simplified)
────────────────────────────────────────────────────
  {
    "schema_version": "4.7",
    "nodes": [
      {
        "uid": "n-1",
        "device_name": "FRITZ!Box 7590",
        "is_meshed": true,
        "mesh_role": "master",        // "master" | "slave" | "unknown"
        "node_interfaces": [
          {
            "uid": "ni-1",
            "name": "AP:5G:0",
            "type": "WLAN",
            "node_links": [
              {
                "state": "CONNECTED",
                "node_1_uid": "n-1",
                "node_2_uid": "n-145",
                "node_interface_1_uid": "ni-1",
                "node_interface_2_uid": "ni-145",
                "max_data_rate_rx": 1300000,   // kbit/s, node_1 → node_2
                "max_data_rate_tx": 1300000,   // kbit/s, node_2 → node_1
                "cur_data_rate_rx": 1300000,
                "cur_data_rate_tx": 975000
              }
            ]
          }
        ]
      }
    ]
  }

Rates are always recorded from node_1's point of view, no matter which
node's interface list the link appears in.  MeshLink therefore stores them
as explicit side A (node_1) → side B (node_2) counters and exposes
oriented_rates() to read them from either endpoint.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

LINK_STATE_CONNECTED = "CONNECTED"

_HEX = "[0-9a-f]"
_CANONICAL_UUID = f"{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}"
# Placeholder names: canonical, braced, urn:uuid: prefixed or bare 32-hex form.
_UUID_NAME = re.compile(
    rf"{_CANONICAL_UUID}|\{{{_CANONICAL_UUID}\}}|urn:uuid:{_CANONICAL_UUID}|{_HEX}{{32}}",
    re.IGNORECASE,
)


class MeshRole(str, Enum):
    """Role of a meshed device.  Only master and slave are distinguished."""

    NONE = "none"
    COORDINATOR = "master"
    REPEATER = "slave"

    @classmethod
    def from_raw(cls, value: object) -> "MeshRole":
        """Map the Fritz!Box `mesh_role` string onto a MeshRole."""
        if value == cls.COORDINATOR.value:
            return cls.COORDINATOR
        if value == cls.REPEATER.value:
            return cls.REPEATER
        return cls.NONE


# ── Data classes ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MeshLink:
    """One edge between two (device, interface) endpoints.

    Side A is node_1 and side B is node_2 as stored in the snapshot.  The
    orientation is fixed by the Fritz!Box and unrelated to the direction in
    which a path walks across the link.

    Attributes:
        state:                 "CONNECTED" or anything else (not traversable).
        node_1_uid:            Device uid of side A.
        node_2_uid:            Device uid of side B.
        node_interface_1_uid:  Interface uid of side A.
        node_interface_2_uid:  Interface uid of side B.
        max_rate_a_to_b:       Negotiated rate A → B in kbit/s.
        max_rate_b_to_a:       Negotiated rate B → A in kbit/s.
        cur_rate_a_to_b:       Current rate A → B in kbit/s.
        cur_rate_b_to_a:       Current rate B → A in kbit/s.
    """
    state: str
    node_1_uid: str
    node_2_uid: str
    node_interface_1_uid: str = ""
    node_interface_2_uid: str = ""
    max_rate_a_to_b: int = 0
    max_rate_b_to_a: int = 0
    cur_rate_a_to_b: int = 0
    cur_rate_b_to_a: int = 0

    @property
    def is_connected(self) -> bool:
        return self.state == LINK_STATE_CONNECTED

    def has_endpoint(self, device_uid: str) -> bool:
        return device_uid in (self.node_1_uid, self.node_2_uid)

    def touches(self, interface: "MeshInterface") -> bool:
        """Return True if this connected link ends on `interface`."""
        return self.is_connected and interface.uid in (
            self.node_interface_1_uid,
            self.node_interface_2_uid,
        )

    def other_device_uid(self, from_uid: str) -> str:
        """Return the uid of the endpoint that is not `from_uid`.

        Raises:
            ValueError: `from_uid` is on neither side of the link.
        """
        if from_uid == self.node_1_uid:
            return self.node_2_uid
        if from_uid == self.node_2_uid:
            return self.node_1_uid
        raise ValueError(f"Device {from_uid!r} is not an endpoint of this link")

    def oriented_rates(self, from_uid: str) -> tuple[int, int, int, int]:
        """Return (max_rx, max_tx, cur_rx, cur_tx) as seen from `from_uid`.

        Side A reads the stored counters as they are; any other endpoint gets
        both directions swapped.
        """
        if from_uid == self.node_1_uid:
            return (
                self.max_rate_a_to_b,
                self.max_rate_b_to_a,
                self.cur_rate_a_to_b,
                self.cur_rate_b_to_a,
            )
        return (
            self.max_rate_b_to_a,
            self.max_rate_a_to_b,
            self.cur_rate_b_to_a,
            self.cur_rate_a_to_b,
        )


@dataclass(frozen=True)
class MeshInterface:
    """A network attachment point of a device.

    `name` (e.g. "AP:5G:0", "UPLINK:2G:0", "LAN:1") and `type` ("WLAN",
    "LAN") are descriptive tags.  Only the client filter looks at `type`.
    """
    uid: str
    name: str = ""
    type: str = ""
    links: tuple[MeshLink, ...] = ()


@dataclass(frozen=True)
class MeshDevice:
    """A single participant of the snapshot.

    Attributes:
        uid:         Unique id within the snapshot (e.g. "n-145").
        name:        Display name.  Unnamed devices carry an empty string or
                     a UUID placeholder.
        is_meshed:   True for mesh members (master and repeaters).
        mesh_role:   MeshRole; only meaningful when is_meshed is True.
        interfaces:  Ordered interfaces owned by this device.
    """
    uid: str
    name: str = ""
    is_meshed: bool = False
    mesh_role: MeshRole = MeshRole.NONE
    interfaces: tuple[MeshInterface, ...] = ()

    @property
    def is_coordinator(self) -> bool:
        return self.is_meshed and self.mesh_role is MeshRole.COORDINATOR

    @property
    def is_repeater(self) -> bool:
        return self.is_meshed and self.mesh_role is MeshRole.REPEATER

    @property
    def has_valid_name(self) -> bool:
        """False for empty names and for UUID placeholders ("not yet named")."""
        if not self.name:
            return False
        return _UUID_NAME.fullmatch(self.name) is None


@dataclass
class MeshTopology:
    """Root container for one Fritz!Box mesh snapshot.

    Attributes:
        schema_version: Fritz!Box JSON schema version string (e.g. "4.7").
        devices:        Devices in snapshot order.  Result ordering of the
                        path resolvers follows this order.
    """
    schema_version: str
    devices: list[MeshDevice] = field(default_factory=list)
    _index: Optional[dict[str, MeshDevice]] = field(
        default=None, init=False, repr=False, compare=False
    )
    _index_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def _device_index(self) -> dict[str, MeshDevice]:
        """Build the uid index once and return it on every later call."""
        index = self._index
        if index is not None:
            return index
        with self._index_lock:
            if self._index is None:
                built: dict[str, MeshDevice] = {}
                for device in self.devices:
                    if device.uid in built:
                        # First occurrence wins.
                        logger.debug("Ignoring duplicate mesh node uid %s", device.uid)
                        continue
                    built[device.uid] = device
                self._index = built
            return self._index

    def lookup(self, uid: str) -> Optional[MeshDevice]:
        """Return the device with `uid`, or None if the snapshot lacks it."""
        return self._device_index().get(uid)


# ── Parsing ───────────────────────────────────────────────────────────────────

def _rate(value: object) -> int:
    """Coerce a raw rate value to a non-negative int (kbit/s)."""
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _parse_link(raw_link: dict) -> MeshLink:
    return MeshLink(
        state=raw_link.get("state", ""),
        node_1_uid=raw_link.get("node_1_uid", ""),
        node_2_uid=raw_link.get("node_2_uid", ""),
        node_interface_1_uid=raw_link.get("node_interface_1_uid", ""),
        node_interface_2_uid=raw_link.get("node_interface_2_uid", ""),
        max_rate_a_to_b=_rate(raw_link.get("max_data_rate_rx", 0)),
        max_rate_b_to_a=_rate(raw_link.get("max_data_rate_tx", 0)),
        cur_rate_a_to_b=_rate(raw_link.get("cur_data_rate_rx", 0)),
        cur_rate_b_to_a=_rate(raw_link.get("cur_data_rate_tx", 0)),
    )


def _parse_interface(raw_iface: dict) -> MeshInterface:
    return MeshInterface(
        uid=raw_iface.get("uid", ""),
        name=raw_iface.get("name", ""),
        type=raw_iface.get("type", ""),
        links=tuple(_parse_link(link) for link in raw_iface.get("node_links") or []),
    )


def parse_mesh_topology(raw: dict) -> MeshTopology:
    """Parse the raw mesh JSON from Fritz!Box into a MeshTopology.

    Every node becomes a MeshDevice, regardless of `is_meshed`, and node
    order is preserved.  Missing keys fall back to empty values so that a
    partially populated snapshot still parses.

    Args:
        raw: The dict returned by FritzHosts.get_mesh_topology(raw=False).
             Top-level keys: "schema_version", "nodes".

    Raises:
        ValueError: `raw` is not a JSON object.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Mesh topology must be an object, got {type(raw).__name__}")

    devices = [
        MeshDevice(
            uid=node.get("uid", ""),
            name=str(node.get("device_name") or ""),
            is_meshed=bool(node.get("is_meshed", False)),
            mesh_role=MeshRole.from_raw(node.get("mesh_role")),
            interfaces=tuple(
                _parse_interface(iface) for iface in node.get("node_interfaces") or []
            ),
        )
        for node in raw.get("nodes") or []
    ]
    return MeshTopology(
        schema_version=str(raw.get("schema_version", "unknown")),
        devices=devices,
    )
