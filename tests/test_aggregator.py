import logging
from decimal import Decimal

from fiber_analytics.analysis.aggregator import (
    OTHER_ISP,
    UNKNOWN_ISP,
    city_distribution,
    filter_channels_by_valid_nodes,
    geographical_distribution,
    group_channels_by_pair,
    isp_from_addresses,
    isp_rankings,
    node_locations,
    node_rankings,
    total_capacity,
)

from .factories import make_node, make_channel, ckb

HETZNER = ["/dns4/fiber.hetzner.example/tcp/8228"]


def test_capacity_is_split_between_countries(two_country_network):
    nodes, channels = two_country_network

    countries = {geo.country_code: geo for geo in geographical_distribution(nodes, channels)}

    assert countries["US"].total_capacity == Decimal(5)
    assert countries["DE"].total_capacity == Decimal(5)
    assert countries["US"].country == "USA"
    assert countries["DE"].country == "Germany"
    assert sum(geo.total_capacity for geo in countries.values()) == total_capacity(channels)


def test_country_names_and_codes_share_a_bucket():
    nodes = [make_node("a", country="US"), make_node("b", country="United States"), make_node("c", country="DE")]

    countries = geographical_distribution(nodes, [])

    assert [(geo.country_code, geo.node_count) for geo in countries] == [("US", 2), ("DE", 1)]


def test_unknown_countries_and_endpoints_are_not_reported():
    nodes = [make_node("a", country="US"), make_node("x", country=None)]
    channels = [
        make_channel("0x01", "a", "x", ckb(10)),
        make_channel("0x02", "a", "missing", ckb(4)),
    ]

    countries = geographical_distribution(nodes, channels)

    assert [geo.country_code for geo in countries] == ["US"]
    assert countries[0].total_capacity == Decimal(7)


def test_city_distribution(two_country_network):
    nodes, channels = two_country_network

    cities = {city.city: city for city in city_distribution(nodes, channels)}

    assert set(cities) == {"New York", "Berlin"}
    assert cities["Berlin"].total_capacity == Decimal(5)
    assert (cities["Berlin"].latitude, cities["Berlin"].longitude) == (52.52, 13.40)
    assert cities["New York"].node_ids == ["a"]


def test_city_location_comes_from_first_locatable_node():
    nodes = [
        make_node("a", city="Tokyo", country="JP", loc=None),
        make_node("b", city="Tokyo", country="JP", loc="35.68,139.69"),
        make_node("c", city="Tokyo", country="JP", loc="1.0,1.0"),
    ]

    (tokyo,) = city_distribution(nodes, [])

    assert tokyo.node_count == 3
    assert (tokyo.latitude, tokyo.longitude) == (35.68, 139.69)


def test_cities_without_location_or_name_are_dropped():
    nodes = [
        make_node("a", city="Paris", country="FR", loc=None),
        make_node("b", city=None, country="FR", loc="48.85,2.35"),
        make_node("c", city="Lyon", country=None, loc="45.76,4.83"),
        make_node("d", city="Nowhere", country="FR", loc="0,0"),
    ]

    assert city_distribution(nodes, []) == []


def test_node_locations_use_half_share():
    nodes = [
        make_node("a", loc="40.71,-74.00"),
        make_node("b", loc="52.52,13.40", country="DE", city="Berlin"),
        make_node("c", loc="not a location"),
    ]
    channels = [make_channel("0x01", "a", "b", ckb(10)), make_channel("0x02", "a", "c", ckb(2))]

    locations = node_locations(nodes, channels)

    assert [(loc.node_id, loc.capacity) for loc in locations] == [("a", Decimal(6)), ("b", Decimal(5))]


def test_node_locations_skip_non_finite_coordinates():
    nodes = [
        make_node("a", loc="inf,1"),
        make_node("b", loc="1,-infinity"),
        make_node("c", loc="nan,1"),
        make_node("d", loc="52.52,13.40", country="DE", city="Berlin"),
    ]

    assert [loc.node_id for loc in node_locations(nodes, [])] == ["d"]


def test_isp_from_first_address():
    assert isp_from_addresses([]) == UNKNOWN_ISP
    assert isp_from_addresses(None) == UNKNOWN_ISP
    assert isp_from_addresses(["/ip4/203.0.113.5/tcp/8228"]) == OTHER_ISP
    assert isp_from_addresses(HETZNER) == "Hetzner"
    assert isp_from_addresses(["/dns4/Node.AWS.example/tcp/8228"]) == "AWS"
    # Only the first address is considered
    assert isp_from_addresses(["/ip4/203.0.113.5/tcp/8228", HETZNER[0]]) == OTHER_ISP


def test_isp_signatures_match_in_priority_order():
    assert isp_from_addresses(["/dns4/aws.google.example"]) == "AWS"
    assert isp_from_addresses(["/dns4/ovh.hetzner.example"]) == "OVH"
    assert isp_from_addresses(["/dns4/google.azure.example"]) == "Google Cloud"


def test_isp_rankings():
    nodes = [
        make_node("a", addresses=HETZNER),
        make_node("b", addresses=HETZNER),
        make_node("c", addresses=["/ip4/203.0.113.5/tcp/8228"]),
        make_node("d", addresses=[]),
    ]
    channels = [make_channel("0x01", "a", "b", ckb(10)), make_channel("0x02", "c", "d", ckb(8))]

    rankings = isp_rankings(nodes, channels)

    assert [r.isp for r in rankings] == ["Hetzner", OTHER_ISP]
    hetzner = rankings[0]
    assert hetzner.node_count == 2
    assert hetzner.total_capacity == Decimal(10)
    assert hetzner.average_capacity == Decimal(5)
    assert rankings[1].total_capacity == Decimal(4)

    assert len(isp_rankings(nodes, channels, top_n=1)) == 1


def test_node_rankings_credit_full_capacity():
    nodes = [make_node("a"), make_node("b"), make_node("c")]
    channels = [make_channel("0x01", "a", "b", ckb(10)), make_channel("0x02", "a", "c", ckb(4))]

    rankings = node_rankings(nodes, channels)

    assert [(r.node_id, r.total_capacity, r.total_channels) for r in rankings] == [
        ("a", Decimal(14), 2),
        ("b", Decimal(10), 1),
        ("c", Decimal(4), 1),
    ]
    assert sum(r.total_capacity for r in rankings) == 2 * total_capacity(channels)
    assert len(node_rankings(nodes, channels, limit=2)) == 2


def test_node_rankings_break_ties_by_channel_count():
    nodes = [make_node("a"), make_node("b"), make_node("c"), make_node("d")]
    channels = [
        make_channel("0x01", "a", "b", ckb(6)),
        make_channel("0x02", "c", "d", ckb(3)),
        make_channel("0x03", "c", "d", ckb(3)),
    ]

    rankings = node_rankings(nodes, channels)

    assert [r.node_id for r in rankings[:2]] == ["c", "d"]
    assert rankings[0].total_channels == 2


def test_undecodable_capacity_contributes_zero(caplog):
    nodes = [make_node("a"), make_node("b", country="DE", city="Berlin")]
    channels = [make_channel("0x01", "a", "b", "0xnothex"), make_channel("0x02", "a", "b", ckb(2))]

    with caplog.at_level(logging.WARNING):
        countries = geographical_distribution(nodes, channels)
        rankings = node_rankings(nodes, channels)

    assert sum(geo.total_capacity for geo in countries) == Decimal(2)
    assert rankings[0].total_channels == 2
    assert rankings[0].total_capacity == Decimal(2)
    assert "0x01" in caplog.text


def test_filter_channels_by_valid_nodes():
    nodes = [make_node("a"), make_node("b")]
    channels = [make_channel("0x01", "a", "b", ckb(1)), make_channel("0x02", "a", "gone", ckb(1))]

    assert [c.channel_outpoint for c in filter_channels_by_valid_nodes(nodes, channels)] == ["0x01"]


def test_group_channels_by_pair():
    channels = [
        make_channel("0x01", "a", "b", ckb(1)),
        make_channel("0x02", "b", "a", ckb(1)),
        make_channel("0x03", "a", "c", ckb(1)),
    ]

    assert [group for _, group in group_channels_by_pair(channels)] == [0, 0, 1]
