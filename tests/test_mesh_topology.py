import threading

import pytest

from conftest import make_iface, make_link, make_node, make_topology
from custom_components.fritzbox_mesh.mesh_topology import (
    MeshDevice,
    MeshInterface,
    MeshLink,
    MeshRole,
    MeshTopology,
    parse_mesh_topology,
)


def test_parse_keeps_snapshot_order_and_fields(topology1):
    assert topology1.schema_version == "4.7"
    assert [d.uid for d in topology1.devices] == [
        "n-1", "n-145", "n-200", "n-201", "n-300", "n-400", "n-500", "n-600",
    ]
    master = topology1.devices[0]
    assert master.name == "FRITZ!Box 7590"
    assert master.mesh_role is MeshRole.COORDINATOR
    assert [i.name for i in master.interfaces] == ["AP:5G:0", "AP:2G:0", "LAN:1"]

    link = master.interfaces[0].links[0]
    assert link.node_1_uid == "n-1"
    assert link.node_interface_2_uid == "ni-145a"
    # rx/tx as stored map onto side A -> side B / side B -> side A
    assert (link.max_rate_a_to_b, link.max_rate_b_to_a) == (1300000, 1300000)
    assert (link.cur_rate_a_to_b, link.cur_rate_b_to_a) == (1300000, 975000)


def test_parse_tolerates_missing_keys():
    topology = parse_mesh_topology({"nodes": [{"uid": "n-1"}, {"uid": "n-2", "node_interfaces": None}]})
    assert topology.schema_version == "unknown"
    assert topology.devices[0] == MeshDevice(uid="n-1")
    assert topology.devices[1].interfaces == ()


def test_parse_coerces_device_name_to_text():
    topology = parse_mesh_topology({"nodes": [{"uid": "n-1", "device_name": 7590}, {"uid": "n-2", "device_name": None}]})
    assert topology.devices[0].name == "7590"
    assert topology.devices[0].has_valid_name
    assert topology.devices[1].name == ""


def test_parse_clamps_bad_rates():
    topology = make_topology(
        make_node("n-1", "box", [make_iface("i-1", [make_link("n-1", "n-2", rates=(-5, "x", None, 10))])])
    )
    link = topology.devices[0].interfaces[0].links[0]
    assert (link.max_rate_a_to_b, link.max_rate_b_to_a, link.cur_rate_a_to_b, link.cur_rate_b_to_a) == (0, 0, 0, 10)


def test_parse_rejects_non_object():
    with pytest.raises(ValueError):
        parse_mesh_topology(["not", "an", "object"])


def test_mesh_role_mapping():
    assert MeshRole.from_raw("master") is MeshRole.COORDINATOR
    assert MeshRole.from_raw("slave") is MeshRole.REPEATER
    assert MeshRole.from_raw("unknown") is MeshRole.NONE
    assert MeshRole.from_raw(None) is MeshRole.NONE


def test_device_role_predicates_require_mesh_membership():
    assert MeshDevice("a", "box", is_meshed=True, mesh_role=MeshRole.COORDINATOR).is_coordinator
    assert MeshDevice("b", "rep", is_meshed=True, mesh_role=MeshRole.REPEATER).is_repeater
    assert not MeshDevice("c", "box", is_meshed=False, mesh_role=MeshRole.COORDINATOR).is_coordinator
    assert not MeshDevice("d", "rep", is_meshed=False, mesh_role=MeshRole.REPEATER).is_repeater


@pytest.mark.parametrize(
    "name, valid",
    [
        ("Laptop", True),
        ("FRITZ!Repeater 2400", True),
        ("", False),
        ("4b6c2e8a-1f3d-4c5e-9a7b-0c1d2e3f4a5b", False),
        ("4B6C2E8A-1F3D-4C5E-9A7B-0C1D2E3F4A5B", False),
        ("{4b6c2e8a-1f3d-4c5e-9a7b-0c1d2e3f4a5b}", False),
        ("urn:uuid:4b6c2e8a-1f3d-4c5e-9a7b-0c1d2e3f4a5b", False),
        ("4b6c2e8a-1f3d-4c5e-9a7b", True),
        ("4b6c2e8a1f3d4c5e9a7b0c1d2e3f4a5b", False),
        ("0f8f-ad5b-d9cb-469f-a165-7086-7728-950e", True),
        ("uuid:4b6c2e8a-1f3d-4c5e-9a7b-0c1d2e3f4a5b", True),
        ("4b6c2e8a-1f3d-4c5e-9a7b-0c1d2e3f4a5b0", True),
        ("4b6c2e8a-1f3d-4c5e-9a7b-0c1d2e3f4a5g", True),
    ],
)
def test_has_valid_name(name, valid):
    assert MeshDevice("n", name).has_valid_name is valid


def test_link_connectivity_and_touches():
    link = MeshLink("CONNECTED", "n-1", "n-2", "i-1", "i-2")
    assert link.is_connected
    assert link.touches(MeshInterface("i-1"))
    assert link.touches(MeshInterface("i-2"))
    assert not link.touches(MeshInterface("i-3"))

    down = MeshLink("DISCONNECTED", "n-1", "n-2", "i-1", "i-2")
    assert not down.is_connected
    assert not down.touches(MeshInterface("i-1"))


def test_other_device_uid():
    link = MeshLink("CONNECTED", "n-1", "n-2")
    assert link.other_device_uid("n-1") == "n-2"
    assert link.other_device_uid("n-2") == "n-1"
    assert link.has_endpoint("n-1") and not link.has_endpoint("n-3")
    with pytest.raises(ValueError):
        link.other_device_uid("n-3")


def test_oriented_rates_swap_for_side_b():
    link = MeshLink(
        "CONNECTED", "x", "y",
        max_rate_a_to_b=4, max_rate_b_to_a=3, cur_rate_a_to_b=2, cur_rate_b_to_a=1,
    )
    assert link.oriented_rates("x") == (4, 3, 2, 1)
    assert link.oriented_rates("y") == (3, 4, 1, 2)


def test_lookup_finds_devices_and_misses_unknown(topology1):
    assert topology1.lookup("n-145").name == "FRITZ!Repeater 2400"
    assert topology1.lookup("n-999") is None
    for device in topology1.devices:
        assert topology1.lookup(device.uid) is device


def test_lookup_keeps_first_duplicate():
    first = MeshDevice("n-1", "first")
    second = MeshDevice("n-1", "second")
    topology = MeshTopology("4.7", [first, second])
    assert topology.lookup("n-1") is first


def test_index_is_built_once():
    topology = MeshTopology("4.7", [MeshDevice(f"n-{i}", f"dev {i}") for i in range(50)])
    index = topology._device_index()
    topology.lookup("n-3")
    assert topology._device_index() is index


def test_concurrent_first_lookup_builds_single_index():
    topology = MeshTopology("4.7", [MeshDevice(f"n-{i}", f"dev {i}") for i in range(500)])
    barrier = threading.Barrier(8)
    indexes = []
    found = []

    def worker():
        barrier.wait()
        found.append(topology.lookup("n-499"))
        indexes.append(topology._device_index())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(index is indexes[0] for index in indexes)
    assert all(device is topology.devices[-1] for device in found)
