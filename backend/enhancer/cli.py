"""CLI for running the harvest and enhancement pipelines without the API."""

import argparse
import asyncio
import logging
from uuid import UUID

from enhancer.config import configure_logging, get_settings
from enhancer.db.article_store import SqlArticleStore
from enhancer.db.postgres import dispose_engine, init_db
from enhancer.services import jobs

logger = logging.getLogger(__name__)


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid article id: {value}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="enhancer", description="Harvest and enhance blog articles")
    subparsers = parser.add_subparsers(dest="command", required=True)

    harvest = subparsers.add_parser("harvest", help="Harvest new articles from the source blog")
    harvest.add_argument("--count", type=int, default=5, help="Articles to harvest (default: 5)")
    harvest.add_argument(
        "--no-enhance",
        action="store_true",
        help="Do not enhance after harvesting, even if ENHANCER_AUTO is set",
    )

    enhance = subparsers.add_parser("enhance", help="Enhance pending articles")
    enhance.add_argument("--limit", type=int, default=None, help="Batch size (default: MAX_PENDING_BATCH)")
    enhance.add_argument("--id", type=_parse_uuid, default=None, help="Enhance only this article")

    subparsers.add_parser("reset", help="Clear enhancement fields on all articles")
    subparsers.add_parser("delete", help="Delete all articles")
    subparsers.add_parser("init-db", help="Create database tables")

    return parser


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.command == "harvest" and args.no_enhance:
        settings = settings.model_copy(update={"enhancer_auto": False})

    await init_db()
    store = SqlArticleStore()

    try:
        if args.command == "init-db":
            logger.info("Database tables initialized")
        elif args.command == "harvest":
            saved = await jobs.harvest_and_store(args.count, settings=settings, store=store)
            logger.info("Stored %d new articles", len(saved))
        elif args.command == "enhance":
            if args.id is not None:
                article = await jobs.enhance_article(args.id, settings=settings, store=store)
                if article is None:
                    return 1
                logger.info("Article %s enhanced: %s", article.id, article.is_enhanced)
            else:
                outcomes = await jobs.run_enhancement_batch(settings=settings, store=store, max_batch=args.limit)
                for outcome in outcomes:
                    logger.info("%s -> %s %s", outcome.article_id, outcome.state.value, outcome.reason)
        elif args.command == "reset":
            await store.reset_enhancements()
        elif args.command == "delete":
            await store.delete_all()
    finally:
        await dispose_engine()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
