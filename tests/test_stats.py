import pytest

from dockerlens.model import (
    NOT_MEASURED,
    ComposeInfo,
    ContainerInfo,
    DockerSnapshot,
    ImageInfo,
    StatInfo,
)
from dockerlens.parser import parse_containers
from dockerlens.stats import SummaryAggregator, build_summary


def make_stat(name, cpu=0.0, used=None, limit=None, rx=0.0, tx=0.0):
    percent = used / limit * 100 if used is not None and limit else None
    return StatInfo(
        name=name,
        cpu_percent=cpu,
        cpu_text=f"{cpu}%",
        mem_used_bytes=used,
        mem_limit_bytes=limit,
        mem_usage_percent=percent,
        net_rx_bytes=rx,
        net_tx_bytes=tx,
    )


def test_empty_snapshot_summary():
    summary = build_summary(DockerSnapshot())
    assert summary.total_containers == 0
    assert summary.running_containers == 0
    assert summary.avg_cpu_percent == 0
    assert summary.total_mem_usage_percent is None
    assert summary.mem_usage_text == NOT_MEASURED
    assert summary.net_rx_text == NOT_MEASURED
    assert summary.net_tx_text == NOT_MEASURED


def test_counts_and_running_classifier():
    snapshot = DockerSnapshot(
        containers=[
            ContainerInfo(id="1", name="a", status="Up 3 minutes"),
            ContainerInfo(id="2", name="b", status="running"),
            ContainerInfo(id="3", name="c", status="Exited (1) 5 seconds ago"),
            ContainerInfo(id="4", name="d", status="Created"),
        ],
        images=[ImageInfo(repository="nginx", tag="latest", id="i1")],
        compose=[
            ComposeInfo(name="shop", status="running(2)"),
            ComposeInfo(name="blog", status="exited(1)"),
        ],
    )
    summary = SummaryAggregator.build(snapshot)
    assert summary.total_containers == 4
    assert summary.running_containers == 2
    assert summary.total_images == 1
    assert summary.compose_projects == 2


def test_cpu_total_and_average():
    snapshot = DockerSnapshot(stats=[make_stat("a", cpu=10.0), make_stat("b", cpu=30.0)])
    summary = build_summary(snapshot)
    assert summary.total_cpu_percent == 40.0
    assert summary.avg_cpu_percent == 20.0


def test_memory_usage_is_weighted_not_averaged():
    snapshot = DockerSnapshot(stats=[
        make_stat("a", used=50, limit=100),
        make_stat("b", used=10, limit=1000),
    ])
    summary = build_summary(snapshot)

    assert summary.total_mem_usage_percent == pytest.approx(60 / 1100 * 100)
    naive_average = (50.0 + 1.0) / 2
    assert summary.total_mem_usage_percent != pytest.approx(naive_average)


def test_memory_text_shows_used_over_limit():
    snapshot = DockerSnapshot(stats=[make_stat("a", used=1536, limit=200 * 1024 * 1024)])
    assert build_summary(snapshot).mem_usage_text == "1.50 KiB / 200 MiB"


def test_unknown_memory_counts_as_zero_in_sums():
    snapshot = DockerSnapshot(stats=[
        make_stat("a", used=50, limit=100),
        make_stat("b"),
    ])
    assert build_summary(snapshot).total_mem_usage_percent == pytest.approx(50.0)


def test_network_totals():
    snapshot = DockerSnapshot(stats=[
        make_stat("a", rx=1024, tx=0),
        make_stat("b", rx=512, tx=0),
    ])
    summary = build_summary(snapshot)
    assert summary.net_rx_text == "1.50 KiB"
    assert summary.net_tx_text == NOT_MEASURED


def test_end_to_end_parse_then_summarize():
    raw = "CONTAINER ID\tNAMES\tSTATUS\tPORTS\n1\tredis\tUp 2 hours\t6379/tcp"
    containers = parse_containers(raw)
    summary = build_summary(DockerSnapshot(containers=containers, images=[], stats=[], compose=[]))
    assert summary.total_containers == 1
    assert summary.running_containers == 1
