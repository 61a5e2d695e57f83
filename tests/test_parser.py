import logging

import pytest

from dockerlens import parser
from dockerlens.model import DockerSnapshot, SourceKind
from dockerlens.parser import (
    build_snapshot,
    first_meaningful_line,
    parse_compose,
    parse_containers,
    parse_images,
    parse_source,
    parse_stats,
    split_columns,
    split_table_rows,
)

CONTAINERS_TAB = "CONTAINER ID\tNAMES\tSTATUS\tPORTS\n1\tredis\tUp 2 hours\t6379/tcp"

CONTAINERS_SPACED = """
CONTAINER ID   NAMES     STATUS                     PORTS
a1b2c3d4e5f6   web       Up 5 minutes               0.0.0.0:80->80/tcp
0f9e8d7c6b5a   worker    Exited (0) 2 hours ago
"""

STATS_TAB = (
    "NAME\tCPU %\tMEM USAGE / LIMIT\tNET I/O\n"
    "redis\t1.25%\t50MiB / 100MiB\t1.2kB / 648B\n"
    "nginx\t0.00%\t--\t--\n"
)


@pytest.mark.parametrize("raw", ["", "   \n\n", "CONTAINER ID\tNAMES", "\n  HEADER ONLY  \n\n", None])
def test_header_only_or_empty_returns_empty(raw):
    assert split_table_rows(raw) == []
    assert parse_containers(raw) == []
    assert parse_images(raw) == []
    assert parse_stats(raw) == []
    assert parse_compose(raw) == []


def test_split_columns_prefers_tabs():
    assert split_columns("a\tb c\t\td") == ["a", "b c", "d"]


def test_split_columns_falls_back_to_spaced():
    assert split_columns("web   Up 5 minutes   80/tcp") == ["web", "Up 5 minutes", "80/tcp"]


def test_split_columns_single_tab_token_uses_spaced_split():
    assert split_columns("web  Up\t") == ["web", "Up"]


def test_parse_containers_tab_separated():
    containers = parse_containers(CONTAINERS_TAB)
    assert len(containers) == 1
    c = containers[0]
    assert (c.id, c.name, c.status, c.ports) == ("1", "redis", "Up 2 hours", "6379/tcp")


def test_parse_containers_spaced_with_missing_ports():
    containers = parse_containers(CONTAINERS_SPACED)
    assert [c.name for c in containers] == ["web", "worker"]
    assert containers[0].ports == "0.0.0.0:80->80/tcp"
    assert containers[1].status == "Exited (0) 2 hours ago"
    assert containers[1].ports == "--"


def test_parse_containers_rejoins_extra_columns_as_ports():
    raw = "ID\tNAMES\tSTATUS\tPORTS\nabc\tapi\tUp\t80/tcp\t443/tcp"
    assert parse_containers(raw)[0].ports == "80/tcp  443/tcp"


def test_parse_containers_short_row_defaults():
    raw = "ID  NAMES\nabc"
    c = parse_containers(raw)[0]
    assert (c.id, c.name, c.status, c.ports) == ("abc", "--", "--", "--")


def test_parse_images():
    raw = "REPOSITORY\tTAG\tIMAGE ID\tSIZE\nnginx\tlatest\tsha256:abc123\t187MB"
    image = parse_images(raw)[0]
    assert (image.repository, image.tag, image.id, image.size) == ("nginx", "latest", "sha256:abc123", "187MB")


def test_parse_stats_derives_numbers():
    stats = parse_stats(STATS_TAB)
    redis, nginx = stats

    assert redis.name == "redis"
    assert redis.cpu_percent == 1.25
    assert redis.cpu_text == "1.25%"
    assert redis.mem_used_bytes == 50 * 1024 ** 2
    assert redis.mem_limit_bytes == 100 * 1024 ** 2
    assert redis.mem_usage_percent == pytest.approx(50.0)
    assert redis.net_io_text == "1.2kB / 648B"
    assert redis.net_rx_bytes == pytest.approx(1200.0)
    assert redis.net_tx_bytes == 648.0

    assert nginx.mem_used_bytes is None
    assert nginx.mem_limit_bytes is None
    assert nginx.mem_usage_percent is None
    assert nginx.net_rx_bytes == 0
    assert nginx.net_tx_bytes == 0


def test_parse_stats_unparseable_net_is_zero_not_none():
    raw = "NAME\tCPU %\tMEM USAGE / LIMIT\tNET I/O\napp\t3%\t1MiB / 2MiB\tn/a"
    stat = parse_stats(raw)[0]
    assert stat.net_rx_bytes == 0
    assert stat.net_tx_bytes == 0
    assert stat.net_io_text == "n/a"


def test_parse_stats_name_only_row_uses_defaults():
    stat = parse_stats("NAME\nlonely")[0]
    assert stat.cpu_text == "0%"
    assert stat.cpu_percent == 0.0
    assert stat.mem_usage_text == "--"
    assert stat.mem_usage_percent is None
    assert stat.net_io_text == "--"


def test_parse_compose():
    raw = "NAME  STATUS  CONFIG FILES\nshop   running(3)   /srv/shop/compose.yml"
    project = parse_compose(raw)[0]
    assert (project.name, project.status, project.config_files) == (
        "shop", "running(3)", "/srv/shop/compose.yml"
    )


def test_malformed_row_is_skipped_not_fatal(mocker, caplog):
    real_row = parser._container_row

    def flaky(parts):
        if parts[0] == "bad":
            raise ValueError("boom")
        return real_row(parts)

    mocker.patch("dockerlens.parser._container_row", side_effect=flaky)
    raw = "ID\tNAMES\tSTATUS\nbad\tx\tUp\ngood\ty\tUp"

    with caplog.at_level(logging.WARNING, logger="dockerlens.parser"):
        containers = parse_containers(raw)

    assert [c.id for c in containers] == ["good"]
    assert "Skipping malformed row" in caplog.text


def test_parser_failure_returns_default(mocker):
    mocker.patch("dockerlens.parser.split_table_rows", side_effect=RuntimeError("unexpected"))
    assert parse_stats("NAME\nx") == []


def test_parse_source_dispatches_by_kind():
    assert parse_source(SourceKind.CONTAINERS, CONTAINERS_TAB)[0].name == "redis"
    assert parse_source("stats", STATS_TAB)[0].name == "redis"


def test_build_snapshot_replaces_only_supplied_kinds():
    previous = build_snapshot({SourceKind.CONTAINERS: CONTAINERS_TAB, SourceKind.STATS: STATS_TAB})
    refreshed = build_snapshot({SourceKind.STATS: "NAME\tCPU %\nnew\t1%"}, previous=previous)

    assert refreshed is not previous
    assert [c.name for c in refreshed.containers] == ["redis"]
    assert [s.name for s in refreshed.records(SourceKind.STATS)] == ["new"]
    # previous generation is left untouched
    assert [s.name for s in previous.stats] == ["redis", "nginx"]


def test_build_snapshot_without_sources_returns_new_object():
    previous = DockerSnapshot()
    assert build_snapshot({}, previous=previous) is not previous


def test_first_meaningful_line():
    assert first_meaningful_line("\n\n  Docker version 27.0.3  \nmore") == "Docker version 27.0.3"
    assert first_meaningful_line("  \n ") is None
    assert first_meaningful_line(None) is None
