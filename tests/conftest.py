import json
import os
import sys

from unittest import mock

import pytest

# ensure workspace root is on sys.path so custom_components can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


def load_fixture(name: str) -> dict:
    with open(os.path.join(FIXTURES, name), encoding="utf-8") as handle:
        return json.load(handle)


@pytest.fixture
def meshlist1() -> dict:
    return load_fixture("meshlist1.json")


@pytest.fixture
def topology1(meshlist1):
    from custom_components.fritzbox_mesh.mesh_topology import parse_mesh_topology

    return parse_mesh_topology(meshlist1)


def make_link(n1, n2, i1="", i2="", rates=(0, 0, 0, 0), state="CONNECTED") -> dict:
    """Raw node_link dict; `rates` is (max_rx, max_tx, cur_rx, cur_tx) as stored."""
    max_rx, max_tx, cur_rx, cur_tx = rates
    return {
        "state": state,
        "node_1_uid": n1,
        "node_2_uid": n2,
        "node_interface_1_uid": i1,
        "node_interface_2_uid": i2,
        "max_data_rate_rx": max_rx,
        "max_data_rate_tx": max_tx,
        "cur_data_rate_rx": cur_rx,
        "cur_data_rate_tx": cur_tx,
    }


def make_iface(uid, links, name="", type_="WLAN") -> dict:
    return {"uid": uid, "name": name or uid, "type": type_, "node_links": list(links)}


def make_node(uid, name, interfaces=(), is_meshed=False, mesh_role="unknown") -> dict:
    return {
        "uid": uid,
        "device_name": name,
        "is_meshed": is_meshed,
        "mesh_role": mesh_role,
        "node_interfaces": list(interfaces),
    }


def make_topology(*nodes, schema_version="4.7"):
    from custom_components.fritzbox_mesh.mesh_topology import parse_mesh_topology

    return parse_mesh_topology({"schema_version": schema_version, "nodes": list(nodes)})


ENTRY_ID = "entry-1"
HOST = "192.168.178.1"


@pytest.fixture
def config_entry():
    return mock.MagicMock(entry_id=ENTRY_ID, data={"host": HOST})


@pytest.fixture
def mesh_coordinator(topology1):
    from custom_components.fritzbox_mesh.coordinator import build_mesh_data

    coordinator = mock.MagicMock()
    coordinator.data = build_mesh_data(topology1, HOST)
    return coordinator


@pytest.fixture
def hass_with_coordinator(mesh_coordinator):
    from custom_components.fritzbox_mesh.const import DOMAIN

    hass = mock.MagicMock()
    hass.data = {DOMAIN: {ENTRY_ID: mesh_coordinator}}
    return hass


def with_extra_client(raw: dict) -> dict:
    """Return a copy of `raw` with a "Tablet" client attached to the repeater."""
    link = make_link("n-145", "n-700", "ni-145c", "ni-700", (144000, 144000, 72000, 65000))
    raw = json.loads(json.dumps(raw))
    raw["nodes"].append(make_node("n-700", "Tablet", [make_iface("ni-700", [link], name="WLAN")]))
    return raw
