"""Create a new story against the backend from the command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path

from story_intake.adapters.local_files import LocalFileReader, LoggingNavigator
from story_intake.adapters.observability import configure_runtime_logging
from story_intake.api.client import StoryGraphQLClient
from story_intake.core.submission import SubmissionOutcome, SubmissionState
from story_intake.domain.models import CATEGORY, PRIORITY, PRODUCT, SOURCE_CODE_LINK, TITLE
from story_intake.domain.ports import SessionContext
from story_intake.errors import AuthenticationRequiredError
from story_intake.settings import IntakeSettings, load_settings
from story_intake.workflow import NewStoryWorkflow


@dataclass(frozen=True)
class ConnectionArgs:
    api_url: str | None
    config_path: Path | None
    token: str


@dataclass(frozen=True)
class CreateStoryArgs:
    connection: ConnectionArgs
    title: str
    source_code_link: str
    description_path: Path
    category: str
    priority: str
    product: str
    test_report_path: str | None


def _settings_for(connection: ConnectionArgs) -> IntakeSettings:
    settings = load_settings(connection.config_path)
    if connection.api_url:
        settings = replace(settings, api_url=connection.api_url.rstrip("/"))
    return settings


async def _mounted_workflow(
    client: StoryGraphQLClient, settings: IntakeSettings, navigator: LoggingNavigator
) -> NewStoryWorkflow:
    workflow = NewStoryWorkflow(
        client,
        client.session,
        navigator,
        settings=settings,
        file_reader=LocalFileReader(),
    )
    workflow.mount()
    await workflow.wait_until_loaded()
    return workflow


async def run_options(connection: ConnectionArgs) -> dict[str, object]:
    """Fetch the option lists a new story can be filed with."""
    settings = _settings_for(connection)
    session = SessionContext.with_token(connection.token)
    async with StoryGraphQLClient(settings, session) as client:
        workflow = await _mounted_workflow(client, settings, LoggingNavigator())
        await workflow.dispose()
    return {
        "categories": list(workflow.categories),
        "priorities": list(workflow.priorities),
        "products": [{"id": product.id, "name": product.name} for product in workflow.products],
        "stories": len(workflow.stories),
    }


async def run_create(args: CreateStoryArgs) -> SubmissionOutcome:
    """Fill the form from CLI values and submit it once."""
    description = args.description_path.read_text(encoding="utf-8")
    settings = _settings_for(args.connection)
    session = SessionContext.with_token(args.connection.token)
    navigator = LoggingNavigator()
    async with StoryGraphQLClient(settings, session) as client:
        workflow = await _mounted_workflow(client, settings, navigator)
        workflow.set_field(TITLE, args.title)
        workflow.set_field(SOURCE_CODE_LINK, args.source_code_link)
        workflow.set_field(CATEGORY, args.category)
        workflow.set_field(PRIORITY, args.priority)
        workflow.set_field(PRODUCT, args.product)
        workflow.editor.on_change(description)
        if args.test_report_path:
            workflow.read_test_report(args.test_report_path)
        similar = workflow.search_results()
        if similar:
            print(f"[new-story] similar existing stories: {len(similar)}")
            for story in similar[:5]:
                print(f"  {story.id}  {story.title}")
        outcome = await workflow.submit()
        await workflow.dispose()
    if outcome.ok:
        print(f"[new-story] created at {outcome.created_at}; navigated to {navigator.current_route}")
    elif outcome.state is SubmissionState.FAILED:
        print(f"[new-story] submission failed: {outcome.error}", file=sys.stderr)
    else:
        print(
            f"[new-story] invalid fields: {', '.join(sorted(outcome.invalid_fields))}",
            file=sys.stderr,
        )
    return outcome


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a new story on the backend.")
    parser.add_argument("--api-url", default="", help="Backend base URL (overrides config).")
    parser.add_argument("--config", default="", help="Path to the web client's config.json.")
    parser.add_argument(
        "--token",
        default="",
        help="Session JWT (default: STORY_INTAKE_JWT environment variable).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("options", help="List categories, priorities and products.")

    create = subparsers.add_parser("create", help="Submit a new story.")
    create.add_argument("--title", required=True)
    create.add_argument("--source-code-link", required=True)
    create.add_argument(
        "--description-file", required=True, help="File holding the rich-text description."
    )
    create.add_argument("--category", required=True)
    create.add_argument("--priority", required=True)
    create.add_argument("--product", required=True, help="Product id.")
    create.add_argument("--test-report", default="", help="Optional test report file to read.")
    return parser


def _connection_from_namespace(namespace: argparse.Namespace) -> ConnectionArgs:
    config = str(namespace.config).strip()
    token = str(namespace.token).strip() or os.environ.get("STORY_INTAKE_JWT", "").strip()
    return ConnectionArgs(
        api_url=str(namespace.api_url).strip() or None,
        config_path=Path(config) if config else None,
        token=token,
    )


def _create_args_from_namespace(namespace: argparse.Namespace) -> CreateStoryArgs:
    test_report = str(namespace.test_report).strip()
    return CreateStoryArgs(
        connection=_connection_from_namespace(namespace),
        title=str(namespace.title),
        source_code_link=str(namespace.source_code_link),
        description_path=Path(namespace.description_file),
        category=str(namespace.category),
        priority=str(namespace.priority),
        product=str(namespace.product),
        test_report_path=test_report or None,
    )


def main(argv: list[str] | None = None) -> int:
    configure_runtime_logging()
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    try:
        if parsed.command == "options":
            payload = asyncio.run(run_options(_connection_from_namespace(parsed)))
            print(json.dumps(payload, ensure_ascii=False, indent=2))
            return 0
        outcome = asyncio.run(run_create(_create_args_from_namespace(parsed)))
    except AuthenticationRequiredError as exc:
        print(f"[new-story] {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"[new-story] could not read input file: {exc}", file=sys.stderr)
        return 1
    return 0 if outcome.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
