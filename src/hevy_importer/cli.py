"""Command-line interface: hevy-importer setup | import | preview | templates."""
import argparse
import getpass
import logging
import sys
from typing import Callable, List, Optional

from hevy_importer.config import (
    Settings,
    settings as default_settings,
    validate_airia_api_key,
    validate_hevy_api_key,
)
from hevy_importer.errors import ImporterError
from hevy_importer.models import Exercise, WorkoutProgram
from hevy_importer.parsers import load_document
from hevy_importer.services.exercise_matcher import ExerciseMatcher
from hevy_importer.services.extraction_service import (
    LLMExtractionClient,
    PipelineExtractionClient,
    create_extraction_client,
)
from hevy_importer.services.hevy_client import HevyClient
from hevy_importer.services.import_service import (
    ImportResult,
    ImportService,
    ImportState,
    PreviewSummary,
)
from hevy_importer.services.progress import LoggingProgressReporter


logger = logging.getLogger(__name__)

DIVIDER = "-" * 50
LLM_PROVIDER_LABELS = {"anthropic": "Anthropic", "openai": "OpenAI"}


def _header(text: str) -> None:
    print()
    print(text)
    print(DIVIDER)


def prompt_yes_no(message: str, default: bool = True) -> bool:
    suffix = "[Y/n]" if default else "[y/N]"
    answer = input(f"{message} {suffix} ").strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def _prompt_value(
    message: str,
    current: Optional[str],
    validate: Callable[[str], Optional[str]],
    secret: bool = False,
) -> str:
    """Ask until the validator accepts; empty input keeps the current value."""
    while True:
        hint = " (press Enter to keep current)" if current else ""
        raw = getpass.getpass(f"{message}{hint}: ") if secret else input(f"{message}{hint}: ")
        value = raw.strip() or (current or "")
        error = validate(value)
        if error is None:
            return value
        print(f"  {error}")


def render_preview(summary: PreviewSummary) -> None:
    _header("Import Preview")
    print(f"Program: {summary.title}")
    print(f"Weeks: {summary.week_count}")
    print(f"Total Workouts: {summary.workout_count}")
    print(f"Total Exercises: {summary.exercise_count}")
    if summary.was_sampled:
        print("Note: large sheets were sampled before extraction; check the result carefully.")

    _header("Exercise Matches")
    name_width = max([len("Exercise")] + [len(row.name) for row in summary.matches])
    title_width = max([len("Hevy Template")] + [len(row.template_title) for row in summary.matches])
    print(f"{'Exercise':<{name_width}}  {'Hevy Template':<{title_width}}  Confidence")
    for row in summary.matches:
        flag = "  (low)" if row.low_confidence else ""
        print(f"{row.name:<{name_width}}  {row.template_title:<{title_width}}  {row.confidence:>9.0%}{flag}")

    if summary.unmatched:
        print()
        print("No template found for:")
        for name in summary.unmatched:
            print(f"  - {name}")


def confirm_import(program: WorkoutProgram, summary: PreviewSummary) -> bool:
    if summary.low_confidence:
        print(f"{len(summary.low_confidence)} exercise(s) matched with low confidence; run preview to review them.")
    return prompt_yes_no(f'Import "{program.title}" to Hevy?')


def _require_keys(config: Settings) -> None:
    missing = config.missing_keys()
    if missing:
        raise ImporterError(
            f"API keys not configured ({', '.join(missing)}). Please run: hevy-importer setup"
        )


def run_import(path: str, preview: bool, assume_yes: bool, config: Settings) -> int:
    _require_keys(config)
    document = load_document(path)

    _header("Preview Workout Import" if preview else "Import Workout to Hevy")
    service = ImportService(
        extractor=create_extraction_client(config),
        hevy_client=HevyClient(config.HEVY_API_KEY, base_url=config.HEVY_BASE_URL),
        progress=LoggingProgressReporter(),
        confirm=None if assume_yes else confirm_import,
    )
    result: ImportResult = service.run(document, preview=preview)

    if result.failed:
        print(f"Error: {result.error}")
        if result.folder is not None:
            print(
                f"{result.routines_created} of {result.routines_total} routines were created in "
                f'folder "{result.folder.title}" before the failure; remove them manually if needed.'
            )
        return 1

    if preview:
        if result.summary is not None:
            render_preview(result.summary)
        print()
        print("Run without preview to import to Hevy")
        return 0

    if result.state is ImportState.CANCELLED:
        print("Import cancelled")
        return 0

    print()
    print("Import completed successfully!")
    print(f'Check your Hevy app for the "{result.program.title}" folder.')
    return 0


def run_templates(search: Optional[str], limit: int, config: Settings) -> int:
    if not config.HEVY_API_KEY:
        raise ImporterError("Hevy API key not configured. Please run: hevy-importer setup")

    client = HevyClient(config.HEVY_API_KEY, base_url=config.HEVY_BASE_URL)
    matcher = ExerciseMatcher(client.get_all_exercise_templates())

    if search:
        _header(f'Top matches for "{search}"')
        matches = matcher.top_matches(Exercise(name=search), limit=limit)
        if not matches:
            print("No matching templates")
        for match in matches:
            print(f"{match.confidence:>5.0%}  {match.template.title}  [{match.template_id}]")
        return 0

    for group, templates in sorted(matcher.by_muscle_group().items()):
        _header(f"{group} ({len(templates)})")
        for template in sorted(templates, key=lambda t: t.title):
            print(f"  {template.title}  [{template.id}]")
    return 0


def _setup_airia(config: Settings) -> bool:
    airia_key = _prompt_value(
        "Enter your Airia API key",
        config.AIRIA_API_KEY,
        lambda v: None if validate_airia_api_key(v) else "Invalid Airia API key format.",
        secret=True,
    )
    pipeline_id = _prompt_value(
        "Enter your Airia Pipeline ID for workout processing",
        config.AIRIA_PIPELINE_ID,
        lambda v: None if v else "Airia Pipeline ID is required",
    )
    airia = PipelineExtractionClient(airia_key, pipeline_id, base_url=config.AIRIA_BASE_URL)
    if not airia.test_connection():
        print("Failed to connect to Airia API. Please check your API key and try again.")
        return False
    print("Airia API connection successful")

    config.AIRIA_API_KEY = airia_key
    config.AIRIA_PIPELINE_ID = pipeline_id
    return True


def _setup_llm(config: Settings, provider: str) -> bool:
    label = LLM_PROVIDER_LABELS[provider]
    setting = f"{provider.upper()}_API_KEY"
    api_key = _prompt_value(
        f"Enter your {label} API key",
        getattr(config, setting),
        lambda v: None if v else f"{label} API key is required",
        secret=True,
    )
    if not LLMExtractionClient(provider=provider, api_key=api_key).test_connection():
        print(f"Failed to connect to {label} API. Please check your API key and try again.")
        return False
    print(f"{label} API connection successful")

    setattr(config, setting, api_key)
    return True


def run_setup(config: Settings) -> int:
    _header("Hevy Importer Setup")
    print("Let's configure your API keys to get started.")

    hevy_key = _prompt_value(
        "Enter your Hevy API key",
        config.HEVY_API_KEY,
        lambda v: None if validate_hevy_api_key(v) else "Invalid Hevy API key format. Must be a valid UUID.",
    )
    if not HevyClient(hevy_key, base_url=config.HEVY_BASE_URL).test_connection():
        print("Failed to connect to Hevy API. Please check your API key and try again.")
        return 1
    print("Hevy API connection successful")

    # Only the active extraction provider's credentials are asked for
    provider = config.EXTRACTION_PROVIDER
    if provider == "airia":
        configured = _setup_airia(config)
    else:
        configured = _setup_llm(config, provider)
    if not configured:
        return 1

    config.HEVY_API_KEY = hevy_key
    config.save()

    print()
    print("Configuration saved successfully!")
    print("Next steps:")
    print("  1. Run: hevy-importer preview <file>")
    print("  2. Run: hevy-importer import <file>")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hevy-importer",
        description="Import workout plans from Excel or PDF files into Hevy",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("setup", help="Configure API keys for Hevy and the extraction provider")

    import_parser = subparsers.add_parser("import", help="Import a workout plan file into Hevy")
    import_parser.add_argument("file", help="Path to the workout plan (.xlsx or .pdf)")
    import_parser.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")

    preview_parser = subparsers.add_parser(
        "preview", help="Preview what would be imported without creating anything"
    )
    preview_parser.add_argument("file", help="Path to the workout plan (.xlsx or .pdf)")

    templates_parser = subparsers.add_parser("templates", help="List or search Hevy exercise templates")
    templates_parser.add_argument("--search", help="Show the best matches for an exercise name")
    templates_parser.add_argument("--limit", type=int, default=5, help="Number of matches to show")

    return parser


def main(argv: Optional[List[str]] = None, config: Optional[Settings] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config or default_settings

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "setup":
            return run_setup(config)
        if args.command == "templates":
            return run_templates(args.search, args.limit, config)
        return run_import(
            args.file,
            preview=args.command == "preview",
            assume_yes=getattr(args, "yes", False),
            config=config,
        )
    except ImporterError as e:
        logger.error(f"{args.command.capitalize()} failed: {e}")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
