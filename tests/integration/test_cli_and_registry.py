import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from cli_router import CLIRouter
from core.config import ApplicationConfig, Config, IntegrationConfig, StoreConfig
from core.container import Container, create_container
from core.exceptions import ConfigurationError, SourceError
from core.models.source import Source
from core.sources.base import check_source_health
from core.sources.registry import StaticSourceRegistry, SupabaseSourceRegistry, build_source_registry

ROWS = [
    {"id": 1, "name": "Daily Ledger", "rss_feed_url": "https://ledger.example.com/rss", "bias_rating": "Left"},
    {"id": 2, "name": "CTV News Toronto", "rss_feed_url": "https://ctv.example.com/rss", "bias_rating": "Center"},
    {"id": 3, "name": "Metro Post", "rss_feed_url": "https://metro.example.com/rss", "bias_rating": "right"},
    {"id": 4, "name": "Retired Weekly", "rss_feed_url": "https://retired.example.com/rss", "bias_rating": "Left",
     "is_active": False},
    {"id": 5, "name": "No Feed", "bias_rating": "Left"},
]


@pytest.fixture
def sources_file(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps(ROWS))
    return path


@pytest.fixture
def offline_config():
    return Config(store=StoreConfig(), integrations=IntegrationConfig(), app=ApplicationConfig())


class TestSourceRegistry:
    def test_file_registry_filters_inactive_denied_and_invalid(self, sources_file):
        registry = StaticSourceRegistry.from_file(str(sources_file), denylist=["ctv news"])

        sources = registry.list_active_sources()

        assert [s.name for s in sources] == ["Daily Ledger", "Metro Post"]
        assert sources[0].source_id == "1"

    @pytest.mark.parametrize("flag, expected", [
        ("false", False), ("FALSE", False), ("0", False), ("true", True), (False, False), (1, True),
    ])
    def test_is_active_flag_parsing(self, flag, expected):
        row = dict(ROWS[0], is_active=flag)

        assert Source.from_dict(row).active is expected

    def test_string_false_in_file_is_inactive(self, tmp_path):
        path = tmp_path / "sources.json"
        path.write_text(json.dumps([dict(ROWS[0], is_active="false"), ROWS[2]]))

        sources = StaticSourceRegistry.from_file(str(path)).list_active_sources()

        assert [s.name for s in sources] == ["Metro Post"]

    def test_missing_file_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            StaticSourceRegistry.from_file(str(tmp_path / "absent.json"))

    def test_supabase_registry_wraps_read_failures(self):
        client = MagicMock()
        client.table.return_value.select.return_value.eq.return_value.execute.side_effect = RuntimeError("503")

        with pytest.raises(SourceError):
            SupabaseSourceRegistry(client).list_active_sources()

    def test_supabase_registry_reads_rows(self):
        client = MagicMock()
        client.table.return_value.select.return_value.eq.return_value.execute.return_value = MagicMock(data=ROWS[:3])

        sources = SupabaseSourceRegistry(client, denylist=["CTV"]).list_active_sources()

        assert [s.name for s in sources] == ["Daily Ledger", "Metro Post"]
        client.table.assert_called_with("news_sources")

    def test_no_backend_configured(self, offline_config):
        with pytest.raises(ConfigurationError):
            build_source_registry(offline_config)

    def test_health_check_reports_transport_errors(self, sources_file):
        source = StaticSourceRegistry.from_file(str(sources_file)).list_active_sources()[0]

        with patch("core.sources.base.requests.head") as head:
            head.side_effect = requests.ConnectionError("refused")
            status = check_source_health(source, timeout=1)

        assert status == {"source": "Daily Ledger", "available": False, "error": "refused"}


class TestContainer:
    def test_factory_may_resolve_other_services(self):
        container = Container()
        container.register_singleton("config", lambda: {"name": "x"})
        container.register_factory("greeting", lambda: f"hello {container.get('config')['name']}")

        assert container.get("greeting") == "hello x"

    def test_singleton_built_once(self):
        container = Container()
        container.register_singleton("thing", object)

        assert container.get("thing") is container.get("thing")

    def test_instance_shadows_factory(self, offline_config):
        container = create_container(offline_config)

        assert container.get("config") is offline_config

    def test_unknown_service(self):
        with pytest.raises(KeyError):
            Container().get("nope")


class TestCLI:
    def test_sources_list_from_file(self, sources_file, offline_config, capsys):
        router = CLIRouter(create_container(offline_config))

        exit_code = router.route_command(["sources", "list", "--sources-file", str(sources_file)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "=== Active Sources (2) ===" in out
        assert "Daily Ledger" in out
        assert "CTV News Toronto" not in out

    def test_topics_run_without_credentials_fails(self, sources_file, offline_config, capsys):
        router = CLIRouter(create_container(offline_config))

        exit_code = router.route_command(["topics", "run", "--dry-run", "--sources-file", str(sources_file)])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["success"] is False
        assert "OPENAI_API_KEY" in output["error"]

    def test_missing_command_prints_help(self, offline_config):
        assert CLIRouter(create_container(offline_config)).route_command([]) == 1
