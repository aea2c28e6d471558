"""Tests for the command line entry point."""

from contextlib import ExitStack
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from enhancer import cli


class TestParser:
    """Argument parsing."""

    def test_harvest_defaults(self) -> None:
        args = cli.build_parser().parse_args(["harvest"])
        assert args.command == "harvest"
        assert args.count == 5
        assert args.no_enhance is False

    def test_enhance_with_id(self) -> None:
        article_id = uuid4()
        args = cli.build_parser().parse_args(["enhance", "--id", str(article_id), "--limit", "3"])
        assert args.id == article_id
        assert args.limit == 3

    def test_invalid_id_rejected(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["enhance", "--id", "nope"])

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestMain:
    """Commands dispatch to jobs and the store."""

    def run(self, argv: list[str], store: AsyncMock, **job_mocks) -> int:
        with ExitStack() as stack:
            stack.enter_context(patch.object(cli, "init_db", new_callable=AsyncMock))
            stack.enter_context(patch.object(cli, "dispose_engine", new_callable=AsyncMock))
            stack.enter_context(patch.object(cli, "SqlArticleStore", return_value=store))
            if job_mocks:
                stack.enter_context(patch.multiple(cli.jobs, **job_mocks))
            return cli.main(argv)

    def test_harvest_no_enhance(self) -> None:
        store = AsyncMock()
        harvest = AsyncMock(return_value=[])

        assert self.run(["harvest", "--count", "2", "--no-enhance"], store, harvest_and_store=harvest) == 0

        settings = harvest.await_args.kwargs["settings"]
        assert harvest.await_args.args == (2,)
        assert settings.enhancer_auto is False

    def test_enhance_unknown_id_fails(self) -> None:
        store = AsyncMock()
        enhance = AsyncMock(return_value=None)

        assert self.run(["enhance", "--id", str(uuid4())], store, enhance_article=enhance) == 1

    def test_reset(self) -> None:
        store = AsyncMock()

        assert self.run(["reset"], store) == 0
        store.reset_enhancements.assert_awaited_once()

    def test_delete(self) -> None:
        store = AsyncMock()

        assert self.run(["delete"], store) == 0
        store.delete_all.assert_awaited_once()
