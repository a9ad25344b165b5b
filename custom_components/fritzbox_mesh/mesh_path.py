"""Path resolution over a Fritz!Box mesh snapshot.

A MeshPath is one step of a walk through the mesh: the device that was
reached, the interface and the link it was reached by, and a back-reference
to the previous step.  Chains are never mutated; every new step is a new
node pointing at its parent.

Two resolvers are built on top of it:

  resolve_coordinator_to_repeater_paths()
      Walks outward from every master over connected links, descending
      through relay hops until a named repeater is reached.  Returns the
      deepest step of every route; root() of each result is the master.

  resolve_client_paths()
      Attaches every named non-mesh device to the mesh device on the other
      side of its connected links.  Each result is a two-step chain: the
      client step whose parent is the attachment-point step.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .mesh_topology import MeshDevice, MeshInterface, MeshLink, MeshTopology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeshPath:
    """One traversal step.

    Attributes:
        device:     The device this step visited.  Always one of the link's
                    two endpoints.
        interface:  The interface of `device` the step belongs to.
        link:       The link of `interface` the step belongs to.
        parent:     The preceding step, or None for the first one.
    """
    device: MeshDevice
    interface: MeshInterface
    link: MeshLink
    parent: Optional[MeshPath] = None

    def root(self) -> MeshPath:
        """Return the first step of the chain."""
        current = self
        while current.parent is not None:
            current = current.parent
        return current

    def depth(self) -> int:
        """Return the number of steps from the root down to this one."""
        steps = 1
        current = self
        while current.parent is not None:
            current = current.parent
            steps += 1
        return steps

    def contains(self, device_uid: str) -> bool:
        """Return True if this step or any ancestor visited `device_uid`."""
        current: Optional[MeshPath] = self
        while current is not None:
            if current.device.uid == device_uid:
                return True
            current = current.parent
        return False

    def device_uids(self) -> tuple[str, ...]:
        """Return the uids of every visited device, root first."""
        uids = []
        current: Optional[MeshPath] = self
        while current is not None:
            uids.append(current.device.uid)
            current = current.parent
        return tuple(reversed(uids))

    def peer_uid(self) -> str:
        """Return the uid of the device on the far side of this step's link."""
        return self.link.other_device_uid(self.device.uid)

    def data_rates(self) -> tuple[int, int, int, int]:
        """Return (max_rx, max_tx, cur_rx, cur_tx) from this step's device."""
        return self.link.oriented_rates(self.device.uid)


# ── Master → repeater routes ──────────────────────────────────────────────────

def _traversable(link: MeshLink, device: MeshDevice) -> bool:
    """Return True if `link` is connected and ends on `device`."""
    return link.is_connected and link.has_endpoint(device.uid)


def resolve_coordinator_to_repeater_paths(topology: MeshTopology) -> list[MeshPath]:
    """Return the deepest step of every master → named repeater route.

    Seeds are taken in snapshot order (master, then interface, then
    connected link) and each seed is walked depth-first, so the result
    order is stable for an unchanged topology.
    """
    paths: list[MeshPath] = []
    for device in topology.devices:
        if not device.is_coordinator:
            continue
        for interface in device.interfaces:
            for link in interface.links:
                if _traversable(link, device):
                    _collect_repeater_paths(
                        topology, MeshPath(device, interface, link), paths
                    )
    return paths


def _collect_repeater_paths(
    topology: MeshTopology, path: MeshPath, paths: list[MeshPath]
) -> None:
    peer_uid = path.peer_uid()
    peer = topology.lookup(peer_uid)
    if peer is None:
        logger.debug("Link of %s points to unknown node %s", path.device.uid, peer_uid)
        return
    if path.contains(peer.uid):
        return

    if peer.is_repeater and peer.has_valid_name:
        # Record the repeater's own side of the arrival link.  A snapshot may
        # list the same link more than once; every copy is reported.
        for peer_interface in peer.interfaces:
            for peer_link in peer_interface.links:
                if peer_link.touches(path.interface) and peer_link.has_endpoint(peer.uid):
                    paths.append(MeshPath(peer, peer_interface, peer_link, path))
        return

    # Relay hop: keep walking through every connected link of the peer.
    for peer_interface in peer.interfaces:
        for peer_link in peer_interface.links:
            if _traversable(peer_link, peer):
                _collect_repeater_paths(
                    topology, MeshPath(peer, peer_interface, peer_link, path), paths
                )


# ── Client attachment points ──────────────────────────────────────────────────

def _matches_type(interface: MeshInterface, interface_types: frozenset[str]) -> bool:
    return not interface_types or interface.type in interface_types


def resolve_client_paths(
    topology: MeshTopology, interface_types: Iterable[str] = ()
) -> list[MeshPath]:
    """Return one two-step chain per client attachment.

    Args:
        topology:        The snapshot to resolve.
        interface_types: Client interface types to include (e.g. {"WLAN"}).
                         Empty means every interface type.

    Returns:
        Client steps in snapshot order.  Each has `parent` set to the mesh
        device step it attaches to; that parent has no parent of its own.
        Clients whose peer is missing from the snapshot are left out.
    """
    wanted = frozenset(interface_types)
    paths: list[MeshPath] = []
    for device in topology.devices:
        if device.is_meshed or not device.has_valid_name:
            continue
        for interface in device.interfaces:
            if not _matches_type(interface, wanted):
                continue
            for link in interface.links:
                if not _traversable(link, device):
                    continue
                peer_uid = link.other_device_uid(device.uid)
                peer = topology.lookup(peer_uid)
                if peer is None:
                    logger.debug("Client %s is linked to unknown node %s", device.uid, peer_uid)
                    continue
                for peer_interface in peer.interfaces:
                    if link.touches(peer_interface):
                        attachment = MeshPath(peer, peer_interface, link)
                        paths.append(MeshPath(device, interface, link, attachment))
    return paths
