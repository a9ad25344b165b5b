"""
Fritz!Box mesh topology fetcher using fritzconnection.

Two ways of obtaining a MeshTopology:

  FritzMeshFetcher                   – live snapshot over TR-064 (Hosts:1
                                       service, X_AVM-DE_GetMeshListPath)
  load_mesh_topology_from_json_file  – a saved snapshot from disk, used for
                                       troubleshooting without a Fritz!Box

Both return the unmodified snapshot decoded by parse_mesh_topology(); path
resolution is left to the caller.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from fritzconnection.core.fritzconnection import FritzConnection
from fritzconnection.lib.fritzhosts import FritzHosts

from .const import DEFAULT_PORT, DEFAULT_TIMEOUT
from .mesh_topology import MeshTopology, parse_mesh_topology

logger = logging.getLogger(__name__)


def load_mesh_topology_from_json_file(path: str, config_dir: str | None = None) -> MeshTopology:
    """Load a mesh topology JSON file and parse it to MeshTopology.

    If `path` is relative and `config_dir` is provided, the file is resolved
    against that directory (Home Assistant config dir).

    Raises:
        OSError:     The file cannot be read.
        ValueError:  The file is not valid JSON or not a JSON object.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute() and config_dir:
        candidate = Path(config_dir) / candidate
    candidate = candidate.resolve()

    raw = json.loads(candidate.read_text(encoding="utf-8"))
    topology = parse_mesh_topology(raw)
    logger.debug("Loaded debug topology from %s (%d nodes)", candidate, len(topology.devices))
    return topology


class FritzMeshFetcher:
    """Connects to a Fritz!Box and returns the parsed mesh snapshot.

    Uses fritzconnection to speak TR-064 over HTTP(S), including the digest
    authentication the Fritz!Box requires.  All I/O is blocking; callers in
    async contexts (the coordinator, the config flow) must run fetch() in an
    executor thread.

    The FritzConnection instance is created on first use and reused, which
    avoids downloading the TR-064 service description on every poll.
    """

    def __init__(
        self,
        address: str,
        port: int = DEFAULT_PORT,
        user: str = "",
        password: str = "",
        use_tls: bool = False,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """Initialise the fetcher with connection parameters.

        Args:
            address:  Hostname or IP of the Fritz!Box (e.g. "192.168.178.1").
            port:     TR-064 port; 49000 for HTTP, 49443 for HTTPS.
            user:     Fritz!Box web-UI username.  May be empty.
            password: Fritz!Box web-UI password.  May be empty.
            use_tls:  True to use HTTPS, False to use plain HTTP.
            timeout:  Socket timeout in seconds for each SOAP call.
        """
        self.address  = address
        self.port     = port
        self.user     = user
        self.password = password
        self.use_tls  = use_tls
        self.timeout  = timeout
        self._fc: Optional[FritzConnection] = None

    def _connect(self) -> FritzConnection:
        """Return (or create) the cached FritzConnection."""
        if self._fc is None:
            logger.info("Connecting to Fritz!Box at %s:%s", self.address, self.port)
            self._fc = FritzConnection(
                address=self.address,
                port=self.port,
                user=self.user,
                password=self.password,
                use_tls=self.use_tls,
                timeout=self.timeout,
            )
        return self._fc

    def fetch(self) -> MeshTopology:
        """Fetch the current mesh snapshot and decode it.

        Raises:
            Any exception raised by fritzconnection (network errors,
            authentication failures, etc.) propagates to the caller, as does
            ValueError for a response that is not a JSON object.
        """
        fh = FritzHosts(fc=self._connect())

        logger.info("Fetching mesh topology...")
        # raw=False: fritzconnection downloads the mesh list and decodes the
        # JSON for us.
        raw = fh.get_mesh_topology(raw=False)
        topology = parse_mesh_topology(raw)

        logger.info(
            "Topology: %d nodes, schema %s",
            len(topology.devices),
            topology.schema_version,
        )
        return topology
