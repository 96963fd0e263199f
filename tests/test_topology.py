import logging

from gridsched.core.topology import DEFAULT_RACK, TopologyResolver, normalize_rack


def test_known_hosts_resolve_to_their_rack(topology):
    assert topology.rack_of("host1.rack1.com") == "/r1"
    assert topology.rack_of("host2.rack2.com") == "/r2"


def test_unknown_host_maps_to_default_rack():
    resolver = TopologyResolver({"a": "/r1"})
    assert resolver.rack_of("nowhere") == DEFAULT_RACK
    assert "nowhere" not in resolver


def test_custom_default_rack():
    resolver = TopologyResolver(default_rack="fallback")
    assert resolver.rack_of("x") == "/fallback"


def test_hosts_of(topology):
    assert topology.hosts_of("/r1") == {"host1.rack1.com", "host3.rack1.com"}
    assert topology.hosts_of("r2") == {"host1.rack2.com", "host2.rack2.com"}
    assert topology.hosts_of("/r9") == set()


def test_moving_a_host_updates_both_directions():
    resolver = TopologyResolver({"a": "/r1"})
    resolver.add_host("a", "/r2")
    assert resolver.rack_of("a") == "/r2"
    assert resolver.racks() == {"/r2"}
    assert resolver.hosts_of("/r1") == set()


def test_remove_host():
    resolver = TopologyResolver.from_pairs([("a", "/r1"), ("b", "/r1")])
    resolver.remove_host("a")
    assert resolver.rack_of("a") == DEFAULT_RACK
    assert resolver.hosts_of("/r1") == {"b"}
    assert len(resolver) == 1


def test_normalize_rack():
    assert normalize_rack("r1") == "/r1"
    assert normalize_rack("//r1") == "/r1"
    assert normalize_rack(" /r1 ") == "/r1"


def test_unknown_host_is_warned_about_once(caplog):
    resolver = TopologyResolver()
    with caplog.at_level(logging.WARNING, logger="gridsched.core.topology"):
        for _ in range(3):
            resolver.rack_of("ghost")

    assert len([r for r in caplog.records if "ghost" in r.getMessage()]) == 1
