import pytest

from transferbench import __main__ as cli
from transferbench.session import BenchmarkSession


@pytest.fixture
def stub_session(monkeypatch, make_transport, negotiating_handler, archive_handler):
    """Run CLI sessions against the stub servers and remember their configs."""
    configs = []
    transport = make_transport(negotiating_handler, archive_handler)

    class StubSession(BenchmarkSession):
        def __init__(self, config, progress_callback=None):
            configs.append(config)
            super().__init__(config, progress_callback=progress_callback, transport=transport)

    monkeypatch.setattr(cli, "BenchmarkSession", StubSession)
    return configs


@pytest.mark.parametrize("raw,expected", [(None, 1000), ("250", 250), ("lots", 1000), ("0", 0), ("-5", 0)])
def test_parse_size_argument(raw, expected):
    assert cli.parse_size_argument(raw) == expected


def test_single_comparison(stub_session):
    assert cli.main(["250"]) == 0

    config = stub_session[0]
    assert config.sizes == (250,)
    assert config.cooldown_ms == 0


def test_single_comparison_defaults_on_malformed_size(stub_session):
    assert cli.main(["many"]) == 0
    assert stub_session[0].sizes == (1000,)


def test_single_comparison_clamps_negative_size(stub_session):
    assert cli.main(["-5"]) == 0
    assert stub_session[0].sizes == (0,)


def test_benchmark_sweep(stub_session, tmp_path):
    assert cli.main(["benchmark", "--cooldown-ms", "0", "-o", str(tmp_path)]) == 0

    config = stub_session[0]
    assert config.sizes == (100, 500, 1000, 5000, 10000)
    assert (tmp_path / "summary.json").exists()


def test_cli_overrides(stub_session):
    cli.main(["10", "--encoded-url", "http://encoded.test:9000/", "--archive-url", "http://archive.test:9001", "--timeout", "3"])

    config = stub_session[0]
    assert config.encoded_base_url == "http://encoded.test:9000"
    assert config.archive_base_url == "http://archive.test:9001"
    assert config.timeout_s == 3.0


def test_unexpected_error_returns_1(monkeypatch):
    class BrokenSession:
        def __init__(self, *args, **kwargs):
            raise RuntimeError("boom")

    monkeypatch.setattr(cli, "BenchmarkSession", BrokenSession)

    assert cli.main(["10"]) == 1
