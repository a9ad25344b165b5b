"""Sensor platform for Fritz!Box Mesh Paths.

Entities created
────────────────
Per resolved connection (one set per observation key, repeater routes and
client attachments alike):
  • MeshLinkRateSensor × 4 – current / max data rate, rx / tx, in kbit/s,
                             read from the mesh side of the connection

Per client device (one per client uid):
  • ClientMeshNodeSensor   – name of the mesh device the client attaches to

One-per-integration:
  • FritzMeshTopologySensor – state = number of master → repeater routes;
                              attributes hold every observation as a dict

Dynamic discovery
─────────────────
A coordinator listener (_async_add_new_entities) fires after each refresh
and registers entities for keys that weren't seen before, so new repeaters
and clients show up without a restart.
"""
from __future__ import annotations

import logging

from homeassistant.components.sensor import SensorEntity, SensorStateClass, SensorDeviceClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import (
    DOMAIN,
    CONF_HOST,
    FIELD_CUR_RX,
    FIELD_CUR_TX,
    FIELD_MAX_RX,
    FIELD_MAX_TX,
    TAG_INTERFACE,
)
from .coordinator import FritzMeshCoordinator
from .observations import MeshObservation

_LOGGER = logging.getLogger(__name__)

# (field key, entity name, icon)
_RATE_SENSORS = (
    (FIELD_CUR_RX, "Current RX Rate", "mdi:download-network"),
    (FIELD_CUR_TX, "Current TX Rate", "mdi:upload-network"),
    (FIELD_MAX_RX, "Max RX Rate", "mdi:download-network-outline"),
    (FIELD_MAX_TX, "Max TX Rate", "mdi:upload-network-outline"),
)


def _device_info(observation: MeshObservation) -> DeviceInfo:
    """Group entities under the device at the far end of the path."""
    return DeviceInfo(
        identifiers={(DOMAIN, observation.node_uid)},
        name=observation.node_name,
    )


# ── Platform setup ────────────────────────────────────────────────────────────

async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Fritz!Box Mesh Paths sensor entities for a config entry."""
    coordinator: FritzMeshCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([FritzMeshTopologySensor(coordinator, entry)])

    known_keys: set[str] = set()
    known_client_uids: set[str] = set()

    @callback
    def _async_add_new_entities() -> None:
        """Create entities for observation keys and clients not seen yet."""
        new_entities: list[SensorEntity] = []

        for key, observation in coordinator.data.observations_by_key.items():
            if key in known_keys:
                continue
            known_keys.add(key)
            new_entities.extend(
                MeshLinkRateSensor(coordinator, entry, observation, field_key, name, icon)
                for field_key, name, icon in _RATE_SENSORS
            )

        for uid, observation in coordinator.data.client_peer_by_uid.items():
            if uid not in known_client_uids:
                known_client_uids.add(uid)
                new_entities.append(ClientMeshNodeSensor(coordinator, entry, observation))

        if new_entities:
            _LOGGER.debug("Adding %d Fritz!Box mesh sensors", len(new_entities))
            async_add_entities(new_entities)

    coordinator.async_add_listener(_async_add_new_entities)
    _async_add_new_entities()


# ── Connection sensors ────────────────────────────────────────────────────────

class MeshLinkRateSensor(CoordinatorEntity[FritzMeshCoordinator], SensorEntity):
    """Reports one data-rate field of a resolved connection (kbit/s).

    The value comes from the root step of the path, i.e. it is the rate as
    seen by the master (repeater routes) or by the attachment point
    (clients).  Unavailable data yields None.
    """

    has_entity_name = True
    state_class = SensorStateClass.MEASUREMENT
    device_class = SensorDeviceClass.DATA_RATE
    native_unit_of_measurement = "kbit/s"

    def __init__(
        self,
        coordinator: FritzMeshCoordinator,
        entry: ConfigEntry,
        observation: MeshObservation,
        field_key: str,
        sensor_name: str,
        icon: str,
    ) -> None:
        super().__init__(coordinator)
        self._key = observation.key
        self._field_key = field_key
        # Routes to the same node differ by the root interface (e.g. 5G vs 2G uplink).
        self._attr_name = " ".join(
            part for part in (observation.peer_name, observation.tags[TAG_INTERFACE], sensor_name) if part
        )
        self._attr_icon = icon
        self._attr_unique_id = f"{entry.entry_id}_{observation.key}_{field_key}"
        self._attr_device_info = _device_info(observation)

    @property
    def native_value(self) -> int | None:
        observation = self.coordinator.data.observations_by_key.get(self._key)
        if observation is None:
            return None
        return observation.fields.get(self._field_key)

    @property
    def extra_state_attributes(self) -> dict | None:
        observation = self.coordinator.data.observations_by_key.get(self._key)
        if observation is None:
            return None
        return dict(observation.tags)


# ── Client sensors ────────────────────────────────────────────────────────────

class ClientMeshNodeSensor(CoordinatorEntity[FritzMeshCoordinator], SensorEntity):
    """Reports which mesh device a client is currently attached to.

    State: the name of the attachment device (e.g. "FRITZ!Repeater 2400"),
    or None while the client has no attachment in the latest snapshot.
    Lets users build automations on roaming between master and repeaters.
    """

    has_entity_name = True
    _attr_icon = "mdi:router-wireless"

    def __init__(
        self,
        coordinator: FritzMeshCoordinator,
        entry: ConfigEntry,
        observation: MeshObservation,
    ) -> None:
        super().__init__(coordinator)
        self._client_uid = observation.node_uid
        self._attr_name = "Mesh Node"
        self._attr_unique_id = f"{entry.entry_id}_{observation.node_uid}_mesh_node"
        self._attr_device_info = _device_info(observation)

    @property
    def native_value(self) -> str | None:
        observation = self.coordinator.data.client_peer_by_uid.get(self._client_uid)
        return observation.peer_name if observation else None


# ── Topology sensor ───────────────────────────────────────────────────────────

class FritzMeshTopologySensor(CoordinatorEntity[FritzMeshCoordinator], SensorEntity):
    """Exposes all resolved paths of the latest snapshot as one entity.

    State (native_value):
        Number of master → repeater routes (duplicates included).

    Attributes (extra_state_attributes):
        host:            The configured Fritz!Box host.
        schema_version:  Mesh JSON schema version.
        repeater_routes: Observation dicts of every repeater route.
        clients:         Observation dicts of every client attachment.
    """

    has_entity_name = True
    _attr_icon = "mdi:router-network"
    _attr_native_unit_of_measurement = "routes"
    # Keep the payload in HA state but out of the recorder database.
    _unrecorded_attributes = frozenset({"repeater_routes", "clients"})

    def __init__(
        self,
        coordinator: FritzMeshCoordinator,
        entry: ConfigEntry,
    ) -> None:
        super().__init__(coordinator)
        self._host: str = entry.data.get(CONF_HOST, "")
        self._attr_name = "Topology"
        self._attr_unique_id = f"{entry.entry_id}_topology"
        # Virtual device for the whole entry so it doesn't collide with the
        # per-node devices.
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry.entry_id)},
            name=f"Fritz!Box Mesh ({self._host})",
        )

    @property
    def native_value(self) -> int:
        return len(self.coordinator.data.repeater_observations)

    @property
    def extra_state_attributes(self) -> dict:
        data = self.coordinator.data
        return {
            "host":            self._host,
            "schema_version":  data.schema_version,
            "repeater_routes": [o.as_dict() for o in data.repeater_observations],
            "clients":         [o.as_dict() for o in data.client_observations],
        }
