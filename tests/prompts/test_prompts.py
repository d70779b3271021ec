# tests/prompts/test_prompts.py

import pytest
from pathlib import Path

import genai_relay
from genai_relay.models.prompts import PromptManager


BUNDLED_PROMPTS = Path(genai_relay.__file__).parent / "prompts"


@pytest.fixture
def temp_prompts_dir(tmp_path):
    """Create a temporary prompts directory with test data"""
    greet_v1 = tmp_path / "greet" / "hello" / "v1"
    greet_v1.mkdir(parents=True)
    (greet_v1 / "config.yaml").write_text("description: Says hello\n")
    (greet_v1 / "instruction.j2").write_text(
        "Hello {{ name }}\n"
        "{% if title is defined %}\n"
        "Title: {{ title }}\n"
        "{% endif %}\n"
    )

    # A prompt without config file
    plain_v2 = tmp_path / "plain" / "static" / "v2"
    plain_v2.mkdir(parents=True)
    (plain_v2 / "instruction.j2").write_text("Static instruction\n")

    return tmp_path


@pytest.fixture
def manager(temp_prompts_dir):
    """Create a PromptManager with test data"""
    return PromptManager(temp_prompts_dir)


# ============ Prompt Loading Tests ============

class TestPromptLoading:
    def test_load_prompt_with_config(self, manager):
        config = manager.load_prompt("greet/hello@v1")

        assert config.name == "greet/hello"
        assert config.version == "v1"
        assert config.ref == "greet/hello@v1"
        assert config.description == "Says hello"
        assert "{{ name }}" in config.instruction_template

    def test_load_prompt_without_config(self, manager):
        config = manager.load_prompt("plain/static@v2")

        assert config.description == ""

    def test_prompt_is_cached(self, manager):
        assert manager.load_prompt("plain/static@v2") is manager.load_prompt("plain/static@v2")

    def test_clear_cache(self, manager):
        first = manager.load_prompt("plain/static@v2")
        manager.clear_cache()
        assert manager.load_prompt("plain/static@v2") is not first

    def test_invalid_reference(self, manager):
        with pytest.raises(ValueError, match="Invalid prompt reference"):
            manager.load_prompt("greet/hello")

    def test_missing_prompt(self, manager):
        with pytest.raises(FileNotFoundError, match="Prompt not found"):
            manager.load_prompt("greet/hello@v99")

    def test_missing_template(self, temp_prompts_dir, manager):
        broken = temp_prompts_dir / "broken" / "prompt" / "v1"
        broken.mkdir(parents=True)

        with pytest.raises(FileNotFoundError, match="Template file not found"):
            manager.load_prompt("broken/prompt@v1")

    def test_missing_prompts_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Prompts dir not found"):
            PromptManager(tmp_path / "absent")


# ============ Rendering Tests ============

class TestRendering:
    def test_render_with_optional_block(self, manager):
        assert manager.render("greet/hello@v1", {"name": "Ada"}) == "Hello Ada\n"
        assert manager.render("greet/hello@v1", {"name": "Ada", "title": "Dr"}) == "Hello Ada\nTitle: Dr\n"

    def test_missing_variable(self, manager):
        with pytest.raises(ValueError, match="Missing required variable"):
            manager.render("greet/hello@v1", {})


class TestBundledPrompts:
    """The instructions shipped with the package"""

    @pytest.fixture
    def bundled(self):
        return PromptManager(BUNDLED_PROMPTS)

    def test_text_prompt_is_verbatim(self, bundled):
        assert bundled.render("text/generate@v1", {"prompt": "Write a haiku"}) == "Write a haiku"

    @pytest.mark.parametrize("prompt", [None, ""])
    def test_image_default(self, bundled, prompt):
        assert bundled.render("image/describe@v1", {"prompt": prompt}) == "Describe the image"

    def test_image_custom(self, bundled):
        assert bundled.render("image/describe@v1", {"prompt": "Count the cats"}) == "Count the cats"

    def test_document(self, bundled):
        assert bundled.render("document/analyze@v1", {}) == "Analyze this document:"

    def test_audio(self, bundled):
        assert bundled.render("audio/analyze@v1", {}) == "Transcribe or analyze the following audio:"
