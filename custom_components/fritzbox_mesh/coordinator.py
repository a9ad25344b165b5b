"""DataUpdateCoordinator for Fritz!Box Mesh Paths.

The coordinator is the central hub for all data in this integration.
Home Assistant's DataUpdateCoordinator handles the polling timer and ensures
all subscribing entities receive the same data object at the same time.

Data flow
──────────
  HA event loop
      │  (every `poll_interval` seconds)
      ▼
  _async_update_data()          ← runs on the HA event loop (async)
      │
      │  hass.async_add_executor_job()
      ▼
  _fetch_and_resolve()          ← runs in a thread-pool executor (blocking)
      │
      ├─ FritzMeshFetcher.fetch()  or  load_mesh_topology_from_json_file()
      │
      └─ build_mesh_data()
            resolve_coordinator_to_repeater_paths()
            resolve_client_paths()
            repeater_observations() / client_observations()

  The resulting FritzMeshData is handed to all registered listeners
  (sensor and binary-sensor entities).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
import logging
from typing import Iterable

from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .const import DOMAIN
from .fritz_mesh import FritzMeshFetcher, load_mesh_topology_from_json_file
from .mesh_path import resolve_client_paths, resolve_coordinator_to_repeater_paths
from .mesh_topology import MeshTopology
from .observations import MeshObservation, client_observations, repeater_observations

_LOGGER = logging.getLogger(__name__)


# ── Shared data model ─────────────────────────────────────────────────────────

@dataclass
class FritzMeshData:
    """Observations produced by a single coordinator refresh.

    Attributes:
        host:                   Fritz!Box host the data was fetched from.
        schema_version:         Mesh JSON schema version of the snapshot.
        repeater_observations:  One entry per master → repeater route, in
                                resolver order.  May contain duplicates when
                                the Fritz!Box lists a link more than once.
        client_observations:    One entry per client attachment.
        observations_by_key:    Key → observation over both lists; the first
                                of duplicate keys wins.
        client_peer_by_uid:     Client uid → its first attachment observation.
    """

    host: str
    schema_version: str = "unknown"
    repeater_observations: list[MeshObservation] = field(default_factory=list)
    client_observations: list[MeshObservation] = field(default_factory=list)
    observations_by_key: dict[str, MeshObservation] = field(init=False, repr=False)
    client_peer_by_uid: dict[str, MeshObservation] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.observations_by_key = {}
        for observation in (*self.repeater_observations, *self.client_observations):
            self.observations_by_key.setdefault(observation.key, observation)
        self.client_peer_by_uid = {}
        for observation in self.client_observations:
            self.client_peer_by_uid.setdefault(observation.node_uid, observation)


def build_mesh_data(
    topology: MeshTopology, host: str, client_types: Iterable[str] = ()
) -> FritzMeshData:
    """Resolve both path sets of `topology` and convert them to observations."""
    repeater_paths = resolve_coordinator_to_repeater_paths(topology)
    client_paths = resolve_client_paths(topology, client_types)
    _LOGGER.debug(
        "Resolved %d repeater routes and %d client attachments",
        len(repeater_paths),
        len(client_paths),
    )
    return FritzMeshData(
        host=host,
        schema_version=topology.schema_version,
        repeater_observations=repeater_observations(repeater_paths, host),
        client_observations=client_observations(client_paths, host),
    )


# ── Coordinator ───────────────────────────────────────────────────────────────

class FritzMeshCoordinator(DataUpdateCoordinator[FritzMeshData]):
    """Polls the Fritz!Box and distributes resolved paths to all platforms.

    One coordinator instance is created per config entry (i.e. per Fritz!Box).
    """

    def __init__(
        self,
        hass: HomeAssistant,
        host: str,
        port: int,
        username: str,
        password: str,
        use_tls: bool,
        poll_interval: int,
        client_types: Iterable[str] = (),
        debug_use_json: bool = False,
        debug_json_path: str = "",
    ) -> None:
        """Initialise the coordinator.

        Args:
            hass:            The Home Assistant instance.
            host:            Fritz!Box hostname or IP address.
            port:            TR-064 port (49000 for HTTP, 49443 for HTTPS).
            username:        Web-UI username (may be empty string).
            password:        Web-UI password (may be empty string).
            use_tls:         Whether to use HTTPS for the TR-064 connection.
            poll_interval:   Seconds between topology refreshes.
            client_types:    Client interface types to report; empty = all.
            debug_use_json:  Read the snapshot from `debug_json_path` instead
                             of the Fritz!Box.
            debug_json_path: Snapshot file, relative to the HA config dir.
        """
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=poll_interval),
        )
        self._host = host
        self._client_types = tuple(client_types)
        self._debug_use_json = debug_use_json
        self._debug_json_path = debug_json_path
        self._fetcher = FritzMeshFetcher(
            address=host,
            port=port,
            user=username,
            password=password,
            use_tls=use_tls,
        )

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _fetch_and_resolve(self) -> FritzMeshData:
        """Blocking fetch + resolve; must run in an executor thread."""
        if self._debug_use_json:
            topology = load_mesh_topology_from_json_file(
                self._debug_json_path, self.hass.config.path()
            )
        else:
            topology = self._fetcher.fetch()
        return build_mesh_data(topology, self._host, self._client_types)

    # ── DataUpdateCoordinator interface ───────────────────────────────────────

    async def _async_update_data(self) -> FritzMeshData:
        """Fetch a new snapshot and resolve it into FritzMeshData.

        Raises:
            UpdateFailed: Wraps any exception from the fetch so that HA marks
                          entities as unavailable and logs a structured message.
        """
        try:
            return await self.hass.async_add_executor_job(self._fetch_and_resolve)
        except Exception as err:
            raise UpdateFailed(f"Error communicating with Fritz!Box: {err}") from err
