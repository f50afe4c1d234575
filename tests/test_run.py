import argparse
import json
from unittest.mock import AsyncMock, patch

import pytest

from scout_cli import run


def test_parse_item_ids():
    assert run.parse_item_ids("1, 2,3") == [1, 2, 3]

    with pytest.raises(argparse.ArgumentTypeError, match="Invalid item ID: x"):
        run.parse_item_ids("1,x")
    with pytest.raises(argparse.ArgumentTypeError):
        run.parse_item_ids("-4")


def test_app_id_may_precede_or_follow_the_command():
    parser = run.build_parser()

    args = parser.parse_args(["--app-id", "4000", "workshop-items", "--item-ids", "1,2"])
    assert (args.app_id, args.item_ids) == (4000, [1, 2])

    args = parser.parse_args(["workshop-items", "--app-id", "4000"])
    assert (args.app_id, args.item_ids) == (4000, [])


def test_missing_app_id_is_rejected():
    with pytest.raises(SystemExit):
        run.main(["workshop-path"])


def test_workshop_items_prints_json(tmp_path, capsys):
    items = [{"published_file_id": 1, "creator_name": "Gabe"}]
    with patch("scout_cli.run.fetch_workshop_items", new=AsyncMock(return_value=items)) as fetch:
        code = run.main(["--cache-dir", str(tmp_path), "--app-id", "4000", "workshop-items", "--item-ids", "1"])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == items
    fetch.assert_awaited_once_with(4000, [1], str(tmp_path))


def test_errors_go_to_stderr(tmp_path, capsys):
    with patch("scout_cli.run.workshop_path", return_value=None):
        code = run.main(["--cache-dir", str(tmp_path), "workshop-path", "--app-id", "4000"])

    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert "Error: Workshop path not found for app ID 4000" in captured.err


def test_clear_cache(tmp_path, capsys):
    (tmp_path / "workshop_items_cache.json").write_text("{}")

    assert run.main(["--cache-dir", str(tmp_path), "clear-cache"]) == 0
    assert "Cleared 1 cache file(s)" in capsys.readouterr().out
    assert not (tmp_path / "workshop_items_cache.json").exists()


async def test_http_session_outlives_the_fetch_deadline(tmp_path):
    with patch("scout_cli.run.aiohttp.ClientSession", side_effect=RuntimeError("no network")) as session_cls:
        with pytest.raises(RuntimeError, match="no network"):
            await run.fetch_workshop_items(4000, [1], str(tmp_path))

    assert session_cls.call_args.kwargs["timeout"].total > run.FETCH_TIMEOUT
