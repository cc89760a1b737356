import json

import pytest

from brandscape.config.settings import settings
from brandscape.errors import ArtifactStorageError, GenerationBackendError, GenerationFailed, InvalidTransition
from brandscape.models.app_config import AppConfig
from brandscape.models.brand import BusinessBrief, DomainStatus
from brandscape.models.state import PipelineStage
from brandscape.services.artifact_store import SupabaseArtifactStore
from brandscape.services.embeddings import Embedder, TextChunker
from brandscape.services.retriever import ContextRetriever
from brandscape.services.trademark_risk import DISCLAIMER
from brandscape.utils.text import strip_suffixes
from brandscape.workflows.brand_pipeline import BrandPipeline
from conftest import LOGO_TEXT, PALETTE_LINES, FakeGenerator, FakeImageGenerator, FakeSearch, LetterEmbeddings, run

BRIEF = BusinessBrief.from_answers("hand-dyed knitting yarn shop", "yarn ball, needles", "warm, playful")

SECOND_BATCH = json.dumps({"suggestions": [
    {"title": "Cast On", "description": "Where every project starts"},
    {"title": "Yarnwise", "description": "Smart yarn choices"},
    {"title": "Tanglefree", "description": "Calm knitting"},
    {"title": "Dye Lot", "description": "Small-batch colour"},
    {"title": "Fibre Fox", "description": "Clever and warm"},
]})


class BrokenTrademarks:
    async def check_trademarks(self, name, context=None, uk_only=None):
        raise RuntimeError("registry exploded")


def test_knitting_brief_gives_five_screened_names(make_dependencies, names_json):
    pipeline = BrandPipeline(make_dependencies(generator=FakeGenerator([names_json])))
    candidates = run(pipeline.start_naming(BRIEF))

    assert len(candidates) == 5
    assert all(strip_suffixes(c.title) == c.title for c in candidates)
    assert candidates[0].title == "Loom Lane"
    assert candidates[0].domains["loomlane.com"] is DomainStatus.TAKEN
    assert candidates[0].domains["loomlane.co.uk"] is DomainStatus.AVAILABLE
    assert all(c.trademark_notes.endswith(DISCLAIMER) for c in candidates)
    assert pipeline.stage is PipelineStage.NAMES
    assert "loom lane" in pipeline.session.seen_titles


def test_full_journey(make_dependencies, names_json):
    generator = FakeGenerator([names_json, PALETTE_LINES, LOGO_TEXT])
    deps = make_dependencies(generator=generator)
    pipeline = BrandPipeline(deps)

    async def journey():
        await pipeline.start_naming(BRIEF)
        pipeline.select_name("loom lane")
        await pipeline.start_colors()
        pipeline.select_color(1)
        prompt = await pipeline.build_logo_prompt()
        logo = await pipeline.generate_logo_image()
        screening = await pipeline.wait_for_logo_screening()
        return prompt, logo, screening

    prompt, logo, screening = run(journey())
    session = pipeline.session
    assert session.selected_name.title == "Loom Lane"
    assert session.candidates == []
    assert session.selected_palette.hex1 == "#18AF6E"
    assert prompt.text == LOGO_TEXT
    assert logo.locator.startswith("/api/logo/logo-") and logo.locator.endswith(".png")
    assert deps.image_generator.prompts == [LOGO_TEXT]
    assert screening.notes.startswith("Logo trademark check unavailable")
    assert pipeline.stage is PipelineStage.LOGO_SCREENED
    assert session.logo_screening == screening


def test_refresh_sends_recent_titles(make_dependencies, names_json):
    generator = FakeGenerator([names_json, SECOND_BATCH])
    pipeline = BrandPipeline(make_dependencies(generator=generator))

    async def refresh():
        await pipeline.start_naming(BRIEF)
        return await pipeline.refresh_names(exclude_titles=["Knitty Gritty"])

    fresh = run(refresh())
    assert "Avoid repeating these exact names: loom lane, purl, skein, woolly nest, stitchwell, knitty gritty." in generator.calls[1]["user"]
    assert [c.title for c in fresh][0] == "Cast On"
    assert pipeline.session.seen_order[-1] == "fibre fox"
    assert len(pipeline.session.seen_titles) == 10
    assert pipeline.stage is PipelineStage.NAMES


def test_operations_out_of_order_are_rejected(make_dependencies, names_json):
    pipeline = BrandPipeline(make_dependencies(generator=FakeGenerator([names_json])))
    with pytest.raises(InvalidTransition):
        run(pipeline.start_colors())
    with pytest.raises(InvalidTransition):
        pipeline.select_name(0)
    with pytest.raises(InvalidTransition):
        run(pipeline.generate_logo_image())

    run(pipeline.start_naming(BRIEF))
    with pytest.raises(InvalidTransition):
        run(pipeline.start_naming(BRIEF))
    with pytest.raises(ValueError):
        pipeline.select_name(7)


def test_color_failure_falls_back_to_defaults(make_dependencies, names_json, tmp_path):
    generator = FakeGenerator([names_json, "bad", "bad", "bad"])
    pipeline = BrandPipeline(make_dependencies(generator=generator))
    pipeline.color_expert.raw_dump_dir = str(tmp_path)

    async def colors():
        await pipeline.start_naming(BRIEF)
        pipeline.select_name(0)
        return await pipeline.start_colors()

    palettes = run(colors())
    assert len(palettes) == 5
    assert all(p.fallback for p in palettes)
    assert pipeline.stage is PipelineStage.COLORS
    assert any(e["step"] == "colors" for e in pipeline.session.errors)


def test_trademark_failure_does_not_block_names(make_dependencies, names_json):
    deps = make_dependencies(generator=FakeGenerator([names_json]), trademarks=BrokenTrademarks())
    pipeline = BrandPipeline(deps)
    candidates = run(pipeline.start_naming(BRIEF))

    assert len(candidates) == 5
    assert candidates[0].trademark_notes.startswith("Trademark check unavailable: registry exploded")
    assert candidates[0].trademark_notes.endswith(DISCLAIMER)
    assert candidates[0].domains
    assert any(e["step"] == "trademark_screening" for e in pipeline.session.errors)


def _to_logo_prompt(pipeline):
    async def steps():
        await pipeline.start_naming(BRIEF)
        pipeline.select_name(0)
        await pipeline.start_colors()
        pipeline.select_color(0)
        await pipeline.build_logo_prompt()
    run(steps())


def test_image_failure_carries_prompt(make_dependencies, names_json):
    deps = make_dependencies(
        generator=FakeGenerator([names_json, PALETTE_LINES, LOGO_TEXT]),
        image_generator=FakeImageGenerator(error=GenerationBackendError("space busy")),
    )
    pipeline = BrandPipeline(deps)
    _to_logo_prompt(pipeline)

    edited = "A flat yarn ball, #0B5394 body with #F4B183 needles."
    with pytest.raises(GenerationFailed) as exc:
        run(pipeline.generate_logo_image(edited))
    assert exc.value.stage == "logo_image"
    assert exc.value.prompt == edited
    assert pipeline.session.logo_prompt.edited
    assert pipeline.stage is PipelineStage.LOGO_PROMPT
    assert pipeline.session.logo_image is None


def test_color_names_added_to_image_prompt_when_enabled(make_dependencies, names_json):
    config = AppConfig(name_colors_in_image_prompt=True, screen_logo_after_generation=False)
    deps = make_dependencies(app_config=config, generator=FakeGenerator([names_json, PALETTE_LINES, LOGO_TEXT]))
    pipeline = BrandPipeline(deps)
    _to_logo_prompt(pipeline)

    async def generate():
        logo = await pipeline.generate_logo_image()
        return logo, await pipeline.wait_for_logo_screening()

    logo, screening = run(generate())
    assert "(#0B5394)" in deps.image_generator.prompts[0]
    assert logo.prompt == LOGO_TEXT
    assert screening is None
    assert pipeline.stage is PipelineStage.LOGO_IMAGE


def test_domain_and_trademark_checks_work_in_any_stage(make_dependencies):
    pipeline = BrandPipeline(make_dependencies())
    domains = run(pipeline.check_domain_for("Loom Lane"))
    report = run(pipeline.check_trademark_for("Loom Lane"))
    assert domains["loomlane.com"] is DomainStatus.TAKEN
    assert report.notes.endswith(DISCLAIMER)
    assert pipeline.stage is PipelineStage.INTAKE


class FailingBucket:
    def upload(self, path, file, file_options):
        raise RuntimeError("storage 503")


class FailingStorage:
    def list_buckets(self):
        return [{"name": "logos"}]

    def from_(self, bucket):
        return FailingBucket()


class FailingSupabase:
    storage = FailingStorage()


def test_storage_failure_carries_prompt(make_dependencies, names_json, monkeypatch):
    monkeypatch.setattr(settings, "max_retries", 0)
    deps = make_dependencies(
        generator=FakeGenerator([names_json, PALETTE_LINES, LOGO_TEXT]),
        artifact_store=SupabaseArtifactStore(client=FailingSupabase(), bucket="logos"),
    )
    pipeline = BrandPipeline(deps)
    _to_logo_prompt(pipeline)

    with pytest.raises(GenerationFailed) as exc:
        run(pipeline.generate_logo_image())
    assert exc.value.prompt == LOGO_TEXT
    assert isinstance(exc.value.__cause__, ArtifactStorageError)
    assert "storage 503" in str(exc.value)
    assert any(e["step"] == "logo_image" for e in pipeline.session.errors)
    assert pipeline.stage is PipelineStage.LOGO_PROMPT


def test_failed_context_sources_are_recorded(make_dependencies, names_json):
    retriever = ContextRetriever(
        TextChunker(), Embedder(embeddings=LetterEmbeddings()), loader=None, search=FakeSearch(fail=True)
    )
    generator = FakeGenerator([names_json, PALETTE_LINES])
    pipeline = BrandPipeline(make_dependencies(generator=generator, retriever=retriever))

    async def colors():
        await pipeline.start_naming(BRIEF)
        pipeline.select_name(0)
        return await pipeline.start_colors()

    palettes = run(colors())
    assert len(palettes) == 5 and not palettes[0].fallback
    color_warnings = [e["error"] for e in pipeline.session.errors if e["step"] == "colors_context"]
    assert any("no document loader configured" in w for w in color_warnings)
    assert any("serpapi" in w for w in color_warnings)
