"""
Unit tests for the nostrpipe CLI (__main__ module).

Tests:
- parse_args() subcommands and flags
- build_pipeline() stage chains per command
- load_config() flag overrides on top of YAML
- main() exit codes, stdout output, and the fail-before-connect key check
"""

import os
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from nostrpipe.__main__ import build_pipeline, load_config, main, parse_args
from nostrpipe.exceptions import ConfigurationError, RelayConnectionError
from nostrpipe.models import StageName
from nostrpipe.stages.config import PipelineConfig
from nostrpipe.stages.publish import Publisher


VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)


@pytest.fixture(autouse=True)
def no_log_handlers():
    """Keep main() from installing root handlers on captured streams."""
    with patch("nostrpipe.__main__.setup_logging"):
        yield


@pytest.fixture
def connected(mock_connection, topic_events):
    """Patch connect_relay to return the mock connection with topic events."""
    mock_connection.query.return_value = list(topic_events)
    mock_connection.__aenter__.return_value = mock_connection
    with patch(
        "nostrpipe.__main__.connect_relay",
        new_callable=AsyncMock,
        return_value=mock_connection,
    ) as mock_connect:
        yield mock_connect


def _stage_names(pipeline):
    return [stage.NAME for stage in pipeline.stages]


class TestParseArgs:
    """Argument parsing."""

    def test_tags_flags(self, npub):
        args = parse_args(
            ["tags", "--author", npub, "--kind", "1", "--kind", "30023", "--sort", "name"]
        )
        assert args.command == "tags"
        assert args.authors == [npub]
        assert args.kinds == [1, 30023]
        assert args.sort == "name"
        assert args.log_level == "WARNING"

    def test_republish_target(self):
        args = parse_args(["republish", "--to", "wss://target"])
        assert args.target == "wss://target"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_sort_choices(self):
        with pytest.raises(SystemExit):
            parse_args(["tags", "--sort", "desc"])


class TestBuildPipeline:
    """build_pipeline() chains per command."""

    @pytest.mark.parametrize(
        ("command", "tail"),
        [
            ("events", []),
            ("tags", [StageName.TAGS, StageName.SORT_BY_COUNT]),
            ("titles", [StageName.TITLES]),
            ("identifiers", [StageName.IDENTIFIERS]),
        ],
    )
    def test_chains(self, command, tail):
        pipeline = build_pipeline(command, PipelineConfig())
        assert _stage_names(pipeline) == [StageName.FILTER, StageName.QUERY, *tail]

    def test_tags_by_name(self):
        pipeline = build_pipeline("tags", PipelineConfig(sort="name"))
        assert _stage_names(pipeline)[-1] == StageName.SORT_BY_NAME

    def test_republish(self, keys):
        pipeline = build_pipeline("republish", PipelineConfig(), Publisher(keys))
        assert _stage_names(pipeline)[-1] == StageName.PUBLISH

    def test_republish_requires_publisher(self):
        with pytest.raises(ConfigurationError, match="requires a publisher"):
            build_pipeline("republish", PipelineConfig())

    def test_unknown_command(self):
        with pytest.raises(ConfigurationError, match="unknown command"):
            build_pipeline("delete", PipelineConfig())


class TestLoadConfig:
    """Flags override the YAML file."""

    def test_flags_only(self):
        config = load_config(parse_args(["titles", "--limit", "3", "--relay", "wss://flag"]))
        assert config.query.limit == 3
        assert config.relay == "wss://flag"

    def test_flags_override_yaml(self, tmp_path: Path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("relay: wss://yaml\nquery:\n  kinds: [1]\n  limit: 20\n")

        config = load_config(parse_args(["tags", "--config", str(path), "--limit", "5"]))

        assert config.relay == "wss://yaml"
        assert config.query.kinds == [1]
        assert config.query.limit == 5


class TestMain:
    """main() end to end with a mocked relay."""

    async def test_tags_to_stdout(self, connected, capsysbinary):
        code = await main(["tags", "--relay", "wss://relay.example.com"])

        assert code == 0
        connected.assert_awaited_once_with("wss://relay.example.com", 10.0)
        out = capsysbinary.readouterr().out
        assert out == b'[{"key":"rust","count":1},{"key":"go","count":2}]\n'

    async def test_connection_closed(self, connected, mock_connection):
        await main(["titles"])
        mock_connection.__aexit__.assert_awaited_once()

    async def test_missing_key_fails_before_connecting(self, connected):
        with patch.dict(os.environ, {}, clear=True):
            code = await main(["republish"])
        assert code == 1
        connected.assert_not_awaited()

    async def test_republish(self, connected, mock_connection, capsysbinary):
        with patch.dict(os.environ, {"PRIVATE_KEY": VALID_HEX_KEY}):
            code = await main(["republish"])
        assert code == 0
        assert mock_connection.publish.await_count == 3
        assert b'"count":3' in capsysbinary.readouterr().out

    async def test_connection_error(self, connected):
        connected.side_effect = RelayConnectionError("Connection failed")
        assert await main(["events"]) == 1

    async def test_invalid_config(self):
        assert await main(["events", "--limit", "0"]) == 1

    async def test_missing_config_file(self, tmp_path: Path):
        assert await main(["events", "--config", str(tmp_path / "missing.yaml")]) == 1

    async def test_nothing_written_on_failure(self, connected, mock_connection, capsysbinary):
        mock_connection.query.side_effect = RelayConnectionError("reset")
        assert await main(["tags"]) == 1
        assert capsysbinary.readouterr().out == b""
