import pytest

from conftest import make_iface, make_link, make_node, make_topology
from custom_components.fritzbox_mesh.const import (
    FIELD_CUR_RX,
    FIELD_CUR_TX,
    FIELD_MAX_RX,
    FIELD_MAX_TX,
    MEASUREMENT_MESH,
    MEASUREMENT_MESH_CLIENT,
    TAG_DEVICE,
    TAG_HOPS,
    TAG_INTERFACE,
    TAG_NODE_INTERFACE,
    TAG_PEER_UID,
    TAG_TYPE,
)
from custom_components.fritzbox_mesh.mesh_path import (
    resolve_client_paths,
    resolve_coordinator_to_repeater_paths,
)
from custom_components.fritzbox_mesh.coordinator import build_mesh_data
from custom_components.fritzbox_mesh.observations import (
    client_observations,
    repeater_observations,
)

HOST = "192.168.178.1"


def test_repeater_observations_fixture(topology1):
    observations = repeater_observations(resolve_coordinator_to_repeater_paths(topology1), HOST)

    assert [o.measurement for o in observations] == [MEASUREMENT_MESH, MEASUREMENT_MESH]
    assert [o.key for o in observations] == ["repeater_n-1_n-145_ni-1", "repeater_n-1_n-145_ni-2"]

    first = observations[0]
    assert first.role == "repeater"
    assert first.node_uid == "n-145"
    assert first.node_name == "FRITZ!Repeater 2400"
    assert first.peer_name == "FRITZ!Box 7590"
    assert first.tags[TAG_DEVICE] == HOST
    assert first.tags[TAG_PEER_UID] == "n-1"
    assert first.tags[TAG_INTERFACE] == "AP:5G:0"
    assert first.tags[TAG_NODE_INTERFACE] == "UPLINK:5G:0"
    assert first.tags[TAG_TYPE] == "WLAN"
    assert first.tags[TAG_HOPS] == "1"
    assert first.fields == {
        FIELD_MAX_RX: 1300000,
        FIELD_MAX_TX: 1300000,
        FIELD_CUR_RX: 1300000,
        FIELD_CUR_TX: 975000,
    }


def test_client_observations_read_rates_from_attachment_point(topology1):
    observations = client_observations(resolve_client_paths(topology1), HOST)

    assert [o.measurement for o in observations] == [MEASUREMENT_MESH_CLIENT] * 3
    assert [o.peer_name for o in observations] == ["FRITZ!Box 7590", "FRITZ!Repeater 2400", "FRITZ!Box 7590"]

    phone = observations[1]
    assert phone.key == "client_n-145_n-201_ni-145c"
    assert phone.role == "client"
    assert phone.tags[TAG_NODE_INTERFACE] == "WLAN"
    assert phone.fields[FIELD_CUR_RX] == 300000
    assert phone.fields[FIELD_CUR_TX] == 200000

    tv = observations[2]
    assert tv.tags[TAG_TYPE] == "LAN"
    assert tv.tags[TAG_HOPS] == "1"


def test_observation_tags_are_strings(topology1):
    observations = repeater_observations(resolve_coordinator_to_repeater_paths(topology1), HOST)
    observations += client_observations(resolve_client_paths(topology1), HOST)
    for observation in observations:
        assert all(isinstance(v, str) for v in observation.tags.values())
        assert all(isinstance(v, int) for v in observation.fields.values())


def test_as_dict_copies_tags_and_fields(topology1):
    observation = repeater_observations(resolve_coordinator_to_repeater_paths(topology1), HOST)[0]
    data = observation.as_dict()

    assert data["measurement"] == MEASUREMENT_MESH
    assert data["key"] == observation.key
    data["tags"][TAG_DEVICE] = "changed"
    assert observation.tags[TAG_DEVICE] == HOST


def test_no_paths_no_observations():
    assert repeater_observations([], HOST) == []
    assert client_observations([], HOST) == []


def test_relay_routes_to_same_repeater_keep_distinct_keys():
    # M reaches S twice from one interface: once through X, once through Y.
    topology = make_topology(
        make_node("M", "FRITZ!Box", [make_iface("i-m", [
            make_link("M", "X", "i-m", "i-x1", (1, 1, 1, 1)),
            make_link("M", "Y", "i-m", "i-y1", (2, 2, 2, 2)),
        ])], is_meshed=True, mesh_role="master"),
        make_node("X", "", [
            make_iface("i-x1", [make_link("M", "X", "i-m", "i-x1", (1, 1, 1, 1))]),
            make_iface("i-x2", [make_link("X", "S", "i-x2", "i-s1")]),
        ], is_meshed=True),
        make_node("Y", "", [
            make_iface("i-y1", [make_link("M", "Y", "i-m", "i-y1", (2, 2, 2, 2))]),
            make_iface("i-y2", [make_link("Y", "S", "i-y2", "i-s2")]),
        ], is_meshed=True),
        make_node("S", "Repeater", [
            make_iface("i-s1", [make_link("X", "S", "i-x2", "i-s1")]),
            make_iface("i-s2", [make_link("Y", "S", "i-y2", "i-s2")]),
        ], is_meshed=True, mesh_role="slave"),
    )
    data = build_mesh_data(topology, HOST)

    assert [o.key for o in data.repeater_observations] == ["repeater_M_X_S_i-m", "repeater_M_Y_S_i-m"]
    assert len(data.observations_by_key) == 2
    assert data.observations_by_key["repeater_M_Y_S_i-m"].fields[FIELD_CUR_TX] == 2
    assert [o.tags[TAG_HOPS] for o in data.repeater_observations] == ["2", "2"]


def test_observations_compare_by_value_but_are_unhashable(topology1):
    paths = resolve_coordinator_to_repeater_paths(topology1)
    first = repeater_observations(paths, HOST)[0]
    again = repeater_observations(paths, HOST)[0]

    assert first == again
    with pytest.raises(TypeError):
        hash(first)
