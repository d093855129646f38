"""Tests for the hevy-importer command line."""
from unittest.mock import MagicMock, patch

import pytest

from hevy_importer import cli
from hevy_importer.hevy_models import RoutineFolder
from hevy_importer.services.import_service import ImportResult, ImportState, MatchRow, PreviewSummary

HEVY_KEY = "123e4567-e89b-12d3-a456-426614174000"


@pytest.fixture
def configured(make_settings):
    return make_settings(
        {"hevyApiKey": HEVY_KEY, "airiaApiKey": "airia-key-123", "airiaPipelineId": "pipe-1"}
    )


@pytest.fixture
def summary():
    return PreviewSummary(
        title="Push Pull Legs",
        week_count=2,
        workout_count=3,
        exercise_count=4,
        matches=[
            MatchRow(name="bench press", template_id="79D0BB3A", template_title="Bench Press (Barbell)", confidence=1.0),
            MatchRow(name="hack squat", template_id="D04AC939", template_title="Squat (Barbell)", confidence=0.45),
        ],
        unmatched=["zzzz"],
    )


@pytest.fixture
def pipeline_mocks():
    """Patch everything run_import touches outside the CLI module."""
    with patch.object(cli, "load_document") as load_document, \
            patch.object(cli, "create_extraction_client") as create_extraction_client, \
            patch.object(cli, "HevyClient") as hevy_client, \
            patch.object(cli, "ImportService") as import_service:
        yield MagicMock(
            load_document=load_document,
            create_extraction_client=create_extraction_client,
            hevy_client=hevy_client,
            import_service=import_service,
            service=import_service.return_value,
        )


class TestImportCommands:

    def test_missing_keys_point_to_setup(self, make_settings, capsys):
        exit_code = cli.main(["import", "plan.xlsx"], config=make_settings())

        assert exit_code == 1
        out = capsys.readouterr().out
        assert "API keys not configured" in out
        assert "hevy-importer setup" in out

    def test_preview_renders_match_table(self, configured, pipeline_mocks, summary, capsys):
        pipeline_mocks.service.run.return_value = ImportResult(state=ImportState.DONE, summary=summary)

        exit_code = cli.main(["preview", "plan.xlsx"], config=configured)

        assert exit_code == 0
        pipeline_mocks.load_document.assert_called_once_with("plan.xlsx")
        pipeline_mocks.service.run.assert_called_once_with(
            pipeline_mocks.load_document.return_value, preview=True
        )
        out = capsys.readouterr().out
        assert "Program: Push Pull Legs" in out
        assert "Total Workouts: 3" in out
        assert "Bench Press (Barbell)" in out
        assert "(low)" in out
        assert "- zzzz" in out
        assert "Run without preview to import to Hevy" in out

    def test_import_with_yes_skips_confirmation(self, configured, pipeline_mocks, sample_program, capsys):
        pipeline_mocks.service.run.return_value = ImportResult(state=ImportState.DONE, program=sample_program)

        exit_code = cli.main(["import", "plan.xlsx", "--yes"], config=configured)

        assert exit_code == 0
        assert pipeline_mocks.import_service.call_args.kwargs["confirm"] is None
        assert "Import completed successfully!" in capsys.readouterr().out

    def test_import_prompts_by_default(self, configured, pipeline_mocks, sample_program):
        pipeline_mocks.service.run.return_value = ImportResult(state=ImportState.CANCELLED, program=sample_program)

        exit_code = cli.main(["import", "plan.xlsx"], config=configured)

        assert exit_code == 0
        assert pipeline_mocks.import_service.call_args.kwargs["confirm"] is cli.confirm_import

    def test_failed_import_reports_partial_progress(self, configured, pipeline_mocks, sample_program, capsys):
        pipeline_mocks.service.run.return_value = ImportResult(
            state=ImportState.FAILED,
            program=sample_program,
            folder=RoutineFolder(id=42, title="Push Pull Legs"),
            routines_created=1,
            routines_total=3,
            error="Hevy API error (500): boom",
        )

        exit_code = cli.main(["import", "plan.xlsx", "-y"], config=configured)

        assert exit_code == 1
        out = capsys.readouterr().out
        assert "Error: Hevy API error (500): boom" in out
        assert "1 of 3 routines were created" in out


class TestConfirmImport:

    @pytest.mark.parametrize("answer,expected", [("", True), ("y", True), ("YES", True), ("n", False)])
    def test_answers(self, sample_program, summary, answer, expected):
        with patch("builtins.input", return_value=answer):
            assert cli.confirm_import(sample_program, summary) is expected


class TestTemplatesCommand:

    def test_search_prints_ranked_matches(self, configured, templates, capsys):
        with patch.object(cli, "HevyClient") as hevy_client:
            hevy_client.return_value.get_all_exercise_templates.return_value = templates
            exit_code = cli.main(["templates", "--search", "Bench Press", "--limit", "2"], config=configured)

        assert exit_code == 0
        lines = [line for line in capsys.readouterr().out.splitlines() if "[" in line]
        assert len(lines) <= 2
        assert "Bench Press (Barbell)" in lines[0]

    def test_lists_by_muscle_group(self, configured, templates, capsys):
        with patch.object(cli, "HevyClient") as hevy_client:
            hevy_client.return_value.get_all_exercise_templates.return_value = templates
            exit_code = cli.main(["templates"], config=configured)

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "chest (1)" in out
        assert "Squat (Barbell)  [D04AC939]" in out

    def test_requires_hevy_key(self, make_settings, capsys):
        assert cli.main(["templates"], config=make_settings()) == 1
        assert "Hevy API key not configured" in capsys.readouterr().out


class TestSetupCommand:

    def test_saves_keys_after_successful_connections(self, make_settings, config_store, capsys):
        config = make_settings()
        answers = iter([HEVY_KEY, "pipe-1"])
        with patch("builtins.input", side_effect=lambda prompt: next(answers)), \
                patch.object(cli.getpass, "getpass", return_value="airia-key-123"), \
                patch.object(cli, "HevyClient") as hevy_client, \
                patch.object(cli, "PipelineExtractionClient") as airia_client:
            hevy_client.return_value.test_connection.return_value = True
            airia_client.return_value.test_connection.return_value = True

            exit_code = cli.main(["setup"], config=config)

        assert exit_code == 0
        assert config_store.load() == {
            "hevyApiKey": HEVY_KEY,
            "airiaApiKey": "airia-key-123",
            "airiaPipelineId": "pipe-1",
            "extractionProvider": "airia",
        }
        assert "Configuration saved successfully!" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "provider,prompt,file_key",
        [
            ("anthropic", "Enter your Anthropic API key", "anthropicApiKey"),
            ("openai", "Enter your OpenAI API key", "openaiApiKey"),
        ],
    )
    def test_llm_provider_asks_for_its_own_key(self, make_settings, config_store, provider, prompt, file_key):
        config = make_settings(EXTRACTION_PROVIDER=provider)
        with patch("builtins.input", return_value=HEVY_KEY), \
                patch.object(cli.getpass, "getpass", return_value="sk-provider-key") as getpass_mock, \
                patch.object(cli, "HevyClient") as hevy_client, \
                patch.object(cli, "PipelineExtractionClient") as airia_client, \
                patch.object(cli, "LLMExtractionClient") as llm_client:
            hevy_client.return_value.test_connection.return_value = True
            llm_client.return_value.test_connection.return_value = True

            exit_code = cli.main(["setup"], config=config)

        assert exit_code == 0
        assert getpass_mock.call_args.args[0].startswith(prompt)
        llm_client.assert_called_once_with(provider=provider, api_key="sk-provider-key")
        airia_client.assert_not_called()
        assert config_store.load() == {
            "hevyApiKey": HEVY_KEY,
            file_key: "sk-provider-key",
            "extractionProvider": provider,
        }

    def test_failed_llm_connection_saves_nothing(self, make_settings, config_store, capsys):
        config = make_settings(EXTRACTION_PROVIDER="openai")
        with patch("builtins.input", return_value=HEVY_KEY), \
                patch.object(cli.getpass, "getpass", return_value="sk-bad"), \
                patch.object(cli, "HevyClient") as hevy_client, \
                patch.object(cli, "LLMExtractionClient") as llm_client:
            hevy_client.return_value.test_connection.return_value = True
            llm_client.return_value.test_connection.return_value = False

            exit_code = cli.main(["setup"], config=config)

        assert exit_code == 1
        assert "Failed to connect to OpenAI API" in capsys.readouterr().out
        assert config_store.load() == {}

    def test_invalid_hevy_key_is_asked_again(self, make_settings, capsys):
        config = make_settings()
        answers = iter(["not-a-uuid", HEVY_KEY])
        with patch("builtins.input", side_effect=lambda prompt: next(answers)), \
                patch.object(cli, "HevyClient") as hevy_client:
            hevy_client.return_value.test_connection.return_value = False

            exit_code = cli.main(["setup"], config=config)

        assert exit_code == 1
        out = capsys.readouterr().out
        assert "Must be a valid UUID" in out
        assert "Failed to connect to Hevy API" in out
        hevy_client.assert_called_once_with(HEVY_KEY, base_url=config.HEVY_BASE_URL)


def test_no_command_prints_help(make_settings, capsys):
    assert cli.main([], config=make_settings()) == 0
    assert "usage: hevy-importer" in capsys.readouterr().out
