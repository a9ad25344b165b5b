# ---------------------------------------------------------------------------
# const.py – Shared constants for the Fritz!Box Mesh Paths integration
#
# All string keys and default values live here so that a single change
# propagates everywhere: config_flow, coordinator, observations, sensors.
# ---------------------------------------------------------------------------

# The integration's unique identifier.  Must match the `domain` field in
# manifest.json and the folder name under custom_components/.
DOMAIN = "fritzbox_mesh"

# ── Config-entry data keys ──────────────────────────────────────────────────
# Also the field names of the config-flow schema, so `user_input` can be
# stored on the entry without remapping.

CONF_HOST     = "host"          # Fritz!Box hostname or IP address
CONF_PORT     = "port"          # TR-064 service port (HTTP: 49000, HTTPS: 49443)
CONF_USERNAME = "username"      # Fritz!Box web-UI username (may be empty)
CONF_PASSWORD = "password"      # Fritz!Box web-UI password
CONF_USE_TLS  = "use_tls"       # Whether to use HTTPS for the TR-064 connection
CONF_POLL_INTERVAL = "poll_interval"  # How often (seconds) to refresh topology
CONF_CLIENT_TYPES = "client_types"    # Client interface types to report; empty = all
CONF_DEBUG_USE_JSON = "debug_use_json"  # Use local debug JSON file instead of TR-064
CONF_DEBUG_JSON_PATH = "debug_json_path"  # Path to debug mesh JSON file

# ── Defaults ────────────────────────────────────────────────────────────────
# 192.168.178.1 is the factory default IP of every AVM Fritz!Box sold in
# German-speaking markets.  Port 49000 is the plain HTTP TR-064 port.

DEFAULT_HOST          = "192.168.178.1"
DEFAULT_PORT          = 49000
DEFAULT_USE_TLS       = False
DEFAULT_POLL_INTERVAL = 60
DEFAULT_TIMEOUT       = 10      # Socket timeout per SOAP call, seconds
DEFAULT_CLIENT_TYPES: list[str] = []
DEFAULT_DEBUG_USE_JSON = False
DEFAULT_DEBUG_JSON_PATH = ""

# Interface types the Fritz!Box reports in `node_interfaces[].type`.
INTERFACE_TYPE_WLAN = "WLAN"
INTERFACE_TYPE_LAN  = "LAN"
CLIENT_TYPE_CHOICES = {
    INTERFACE_TYPE_WLAN: "WiFi",
    INTERFACE_TYPE_LAN:  "LAN",
}

# ── Observations ────────────────────────────────────────────────────────────
# Measurement names, tag keys and field keys of the records emitted for each
# resolved path.

MEASUREMENT_MESH        = "fritzbox_mesh"
MEASUREMENT_MESH_CLIENT = "fritzbox_mesh_client"

ROLE_REPEATER = "repeater"
ROLE_CLIENT   = "client"

TAG_DEVICE         = "fritz_device"           # configured Fritz!Box host
TAG_ROLE           = "fritz_mesh_role"        # "repeater" | "client"
TAG_NODE_UID       = "fritz_mesh_node_uid"    # device at the end of the path
TAG_NODE_NAME      = "fritz_mesh_node_name"
TAG_NODE_INTERFACE = "fritz_mesh_node_interface"
TAG_PEER_UID       = "fritz_mesh_peer_uid"    # device at the root of the path
TAG_PEER_NAME      = "fritz_mesh_peer_name"
TAG_INTERFACE      = "fritz_mesh_interface"   # root interface name, e.g. "AP:5G:0"
TAG_TYPE           = "fritz_mesh_type"        # root interface type, e.g. "WLAN"
TAG_HOPS           = "fritz_mesh_hops"        # links between root and end

FIELD_MAX_RX = "max_data_rate_rx"   # kbit/s
FIELD_MAX_TX = "max_data_rate_tx"
FIELD_CUR_RX = "cur_data_rate_rx"
FIELD_CUR_TX = "cur_data_rate_tx"
