"""Binary sensor platform for Fritz!Box Mesh Paths (per-client attachment).

Entities created
────────────────
One ClientConnectivitySensor per client uid that ever appeared in the
resolved client paths.

  State: on  → the client has at least one attachment in the latest snapshot
         off → the client is no longer attached (or no longer listed)

Each sensor shares its device identifiers with the client's sensors in
sensor.py, so HA groups them under one device card.
"""
from __future__ import annotations

import logging

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import FritzMeshCoordinator
from .observations import MeshObservation

_LOGGER = logging.getLogger(__name__)


# ── Platform setup ────────────────────────────────────────────────────────────

async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Fritz!Box Mesh Paths binary sensors for a config entry."""
    coordinator: FritzMeshCoordinator = hass.data[DOMAIN][entry.entry_id]

    known_client_uids: set[str] = set()

    @callback
    def _async_add_new_entities() -> None:
        """Create binary sensors for client uids not yet seen."""
        new_entities: list[BinarySensorEntity] = []

        for uid, observation in coordinator.data.client_peer_by_uid.items():
            if uid not in known_client_uids:
                known_client_uids.add(uid)
                new_entities.append(
                    ClientConnectivitySensor(coordinator, entry, observation)
                )

        if new_entities:
            async_add_entities(new_entities)

    coordinator.async_add_listener(_async_add_new_entities)
    _async_add_new_entities()


# ── Binary sensor entity ──────────────────────────────────────────────────────

class ClientConnectivitySensor(
    CoordinatorEntity[FritzMeshCoordinator], BinarySensorEntity
):
    """ON while a client device is attached to the mesh.

    The entity name is None so HA uses the device name (e.g. "Laptop") as
    the friendly name.
    """

    has_entity_name = True
    device_class = BinarySensorDeviceClass.CONNECTIVITY
    _attr_name = None

    def __init__(
        self,
        coordinator: FritzMeshCoordinator,
        entry: ConfigEntry,
        client: MeshObservation,
    ) -> None:
        super().__init__(coordinator)
        self._client_uid = client.node_uid
        self._attr_unique_id = f"{entry.entry_id}_{client.node_uid}_connected"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, client.node_uid)},
            name=client.node_name,
        )

    @property
    def is_on(self) -> bool:
        return self._client_uid in self.coordinator.data.client_peer_by_uid
