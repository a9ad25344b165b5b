"""Conversion of resolved mesh paths into observation records.

Every MeshPath returned by the resolvers becomes one MeshObservation: a
measurement name, a set of string tags describing who is connected to whom,
and the four data-rate fields of the path's root link.  Rates are read from
the root step, i.e. from the mesh side of the connection (the master for
repeater routes, the attachment point for clients).
"""
from __future__ import annotations

from dataclasses import dataclass

from .const import (
    FIELD_CUR_RX,
    FIELD_CUR_TX,
    FIELD_MAX_RX,
    FIELD_MAX_TX,
    MEASUREMENT_MESH,
    MEASUREMENT_MESH_CLIENT,
    ROLE_CLIENT,
    ROLE_REPEATER,
    TAG_DEVICE,
    TAG_HOPS,
    TAG_INTERFACE,
    TAG_NODE_INTERFACE,
    TAG_NODE_NAME,
    TAG_NODE_UID,
    TAG_PEER_NAME,
    TAG_PEER_UID,
    TAG_ROLE,
    TAG_TYPE,
)
from .mesh_path import MeshPath


@dataclass(frozen=True)
class MeshObservation:
    """One time-series record derived from a MeshPath.

    Attributes:
        measurement: "fritzbox_mesh" or "fritzbox_mesh_client".
        key:         Stable identity of the connection, used for entity
                     unique_ids: the role, every device uid from root to
                     end, and the root interface.  Duplicate mirrored
                     links share a key.
        tags:        String tags (see const.TAG_*).
        fields:      Integer rate fields in kbit/s (see const.FIELD_*).
    """
    measurement: str
    key: str
    tags: dict[str, str]
    fields: dict[str, int]

    # tags and fields are dicts
    __hash__ = None

    @property
    def role(self) -> str:
        return self.tags[TAG_ROLE]

    @property
    def node_uid(self) -> str:
        return self.tags[TAG_NODE_UID]

    @property
    def node_name(self) -> str:
        return self.tags[TAG_NODE_NAME]

    @property
    def peer_name(self) -> str:
        return self.tags[TAG_PEER_NAME]

    def as_dict(self) -> dict:
        """Return a JSON-safe dict (for entity attributes)."""
        return {
            "measurement": self.measurement,
            "key": self.key,
            "tags": dict(self.tags),
            "fields": dict(self.fields),
        }


def _to_observation(path: MeshPath, measurement: str, role: str, host: str) -> MeshObservation:
    root = path.root()
    max_rx, max_tx, cur_rx, cur_tx = root.data_rates()
    root_interface = root.interface.uid or root.interface.name
    return MeshObservation(
        measurement=measurement,
        key=f"{role}_{'_'.join(path.device_uids())}_{root_interface}",
        tags={
            TAG_DEVICE:         host,
            TAG_ROLE:           role,
            TAG_NODE_UID:       path.device.uid,
            TAG_NODE_NAME:      path.device.name,
            TAG_NODE_INTERFACE: path.interface.name,
            TAG_PEER_UID:       root.device.uid,
            TAG_PEER_NAME:      root.device.name,
            TAG_INTERFACE:      root.interface.name,
            TAG_TYPE:           root.interface.type,
            TAG_HOPS:           str(path.depth() - 1),
        },
        fields={
            FIELD_MAX_RX: max_rx,
            FIELD_MAX_TX: max_tx,
            FIELD_CUR_RX: cur_rx,
            FIELD_CUR_TX: cur_tx,
        },
    )


def repeater_observations(paths: list[MeshPath], host: str) -> list[MeshObservation]:
    """Convert master → repeater routes into "fritzbox_mesh" observations."""
    return [_to_observation(p, MEASUREMENT_MESH, ROLE_REPEATER, host) for p in paths]


def client_observations(paths: list[MeshPath], host: str) -> list[MeshObservation]:
    """Convert client attachments into "fritzbox_mesh_client" observations."""
    return [_to_observation(p, MEASUREMENT_MESH_CLIENT, ROLE_CLIENT, host) for p in paths]
