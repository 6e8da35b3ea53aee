import threading
import urllib.error
import urllib.request

import pytest

from slurm_exporter.exposition import Collector, Desc, Registry, const_metric
from slurm_exporter.server import (
    CONTENT_TYPE,
    build_registry,
    create_server,
    main,
    parse_listen_address,
)


class _StaticCollector(Collector):
    def __init__(self):
        self.jobs = Desc("test_jobs", "Jobs", ("user",))

    def collect(self):
        yield const_metric(self.jobs, 3, "alice")


class _FailingCollector(Collector):
    def __init__(self):
        self.broken = Desc("test_broken", "Broken")

    def collect(self):
        raise RuntimeError("boom")


def _names(registry):
    return {desc.name for collector in registry._collectors for desc in collector.describe()}


def test_registry_without_gpus():
    names = _names(build_registry(False))
    assert "slurm_cpus_alloc" in names
    assert "slurm_account_fairshare" in names
    assert "slurm_gpus_alloc" not in names


def test_registry_with_gpus():
    without = _names(build_registry(False))
    with_gpus = _names(build_registry(True))
    assert without < with_gpus
    assert "slurm_user_gpus_running" in with_gpus


def test_parse_default_address():
    assert parse_listen_address(":8080") == ("", 8080)


def test_parse_host_and_ipv6():
    assert parse_listen_address("127.0.0.1:8080") == ("127.0.0.1", 8080)
    assert parse_listen_address("[::1]:8080") == ("::1", 8080)


@pytest.mark.parametrize("address", ["8080", "host:99999", "host:no-such-service-xyz"])
def test_parse_invalid_address(address):
    with pytest.raises(ValueError):
        parse_listen_address(address)


@pytest.fixture
def serve():
    servers = []

    def start(registry):
        server = create_server("127.0.0.1:0", registry)
        servers.append(server)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        return f"http://127.0.0.1:{server.server_address[1]}"

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def test_metrics_endpoint(serve):
    registry = Registry()
    registry.register(_StaticCollector())
    base = serve(registry)
    with urllib.request.urlopen(base + "/metrics") as response:
        body = response.read().decode()
        assert response.headers["Content-Type"] == CONTENT_TYPE
    assert body == registry.render()
    assert 'test_jobs{user="alice"} 3' in body


def test_unknown_path_is_404(serve):
    base = serve(Registry())
    with pytest.raises(urllib.error.HTTPError) as info:
        urllib.request.urlopen(base + "/other")
    assert info.value.code == 404


def test_failing_collector_is_500(serve):
    registry = Registry()
    registry.register(_FailingCollector())
    base = serve(registry)
    with pytest.raises(urllib.error.HTTPError) as info:
        urllib.request.urlopen(base + "/metrics")
    assert info.value.code == 500


def test_main_with_bad_address_fails():
    assert main(["-listen-address", "nonsense"]) == 1


def test_main_rejects_bad_boolean():
    with pytest.raises(SystemExit):
        main(["-gpus-acct=maybe"])