"""
Test: Default prompt rendering, custom template substitution and the image branch.
"""
import pytest

from feedback_copilot.core.errors import UnsupportedType
from feedback_copilot.services.content import ImageContent, TextContent
from feedback_copilot.services.prompts import (
    IMAGE_PLACEHOLDER,
    ComposedPrompt,
    PromptComposer,
    apply_custom_template,
    build_default_prompt,
    collapse_empty_criteria_heading,
    content_type_note,
    insert_content_type_note,
    substitute_tokens,
)


class TestDefaultPrompt:
    def test_deterministic(self):
        a = build_default_prompt("Essay 1", "Great work", "Clarity", "pdf")
        b = build_default_prompt("Essay 1", "Great work", "Clarity", "pdf")
        assert a == b

    def test_task_and_body_inserted(self):
        text = build_default_prompt("Essay 1", "Great work")
        assert "### ASSIGNMENT:\n\nEssay 1\n### STUDENT WORK:\n\nGreat work" in text

    def test_criteria_omitted_when_empty(self):
        for criteria in (None, "", "   \n"):
            text = build_default_prompt("Essay 1", "Great work", criteria)
            assert "EVALUATION CRITERIA" not in text

    def test_criteria_block_verbatim(self):
        text = build_default_prompt("Essay 1", "Great work", "  1. Clarity\n2. Depth ")
        assert "### EVALUATION CRITERIA:\n\n  1. Clarity\n2. Depth \n### STUDENT WORK:" in text

    def test_note_precedes_student_work(self):
        text = build_default_prompt("Essay 1", "Great work", content_type="google-slides")
        note = content_type_note("google-slides")
        assert f"Essay 1{note}\n### STUDENT WORK:" in text
        assert "a Google Slides presentation" in text

    def test_no_note_when_unset(self):
        assert "**IMPORTANT:**" not in build_default_prompt("Essay 1", "Great work")

    def test_language_in_closing(self):
        text = build_default_prompt("t", "c", language="English")
        assert text.endswith("Write the feedback in English.")


def test_content_type_note_fallback_description():
    assert "a document" in content_type_note("something-else")
    assert content_type_note(None) == ""


class TestSubstituteTokens:
    def test_all_occurrences(self):
        out = substitute_tokens("{{task}} / {{task}}", {"{{task}}": "T"})
        assert out == "T / T"

    def test_values_not_rescanned(self):
        out = substitute_tokens(
            "A={{task}} B={{content}}",
            {"{{task}}": "{{content}}", "{{content}}": "body"},
        )
        assert out == "A={{content}} B=body"

    def test_unknown_braces_kept(self):
        assert substitute_tokens("{{other}} {x}", {"{{task}}": "T"}) == "{{other}} {x}"

    def test_extra_leading_brace(self):
        assert substitute_tokens("{{{task}}}", {"{{task}}": "T"}) == "{T}"


class TestCollapseCriteriaHeading:
    def test_heading_before_student_work(self):
        text = "### EVALUATION CRITERIA:\n\n\n### STUDENT WORK:\nbody"
        assert collapse_empty_criteria_heading(text) == "### STUDENT WORK:\nbody"

    def test_heading_at_end(self):
        assert collapse_empty_criteria_heading("Intro\n### EVALUATION CRITERIA:\n  \n") == "Intro\n"

    def test_heading_with_content_kept(self):
        text = "### EVALUATION CRITERIA:\n\nMy rules\n"
        assert collapse_empty_criteria_heading(text) == text


class TestCustomTemplate:
    def test_round_trip(self):
        out = apply_custom_template("Task: {{task}}\nWork: {{content}}", "Essay 1", "Great work")
        assert "Essay 1" in out and "Great work" in out
        assert "{{task}}" not in out and "{{content}}" not in out

    def test_global_replace(self):
        out = apply_custom_template("{{task}} {{task}} {{content}} {{content}}", "T", "C")
        assert out == "T T C C"

    def test_criteria_substituted(self):
        template = "{{task}}\n### EVALUATION CRITERIA:\n{{criteria}}\n### STUDENT WORK:\n{{content}}"
        out = apply_custom_template(template, "T", "C", criteria="Be clear")
        assert out == "T\n### EVALUATION CRITERIA:\nBe clear\n### STUDENT WORK:\nC"

    def test_empty_criteria_collapses_heading(self):
        template = "{{task}}\n\n### EVALUATION CRITERIA:\n\n{{criteria}}\n\n### STUDENT WORK:\n\n{{content}}"
        out = apply_custom_template(template, "T", "C", criteria="")
        assert "EVALUATION CRITERIA" not in out
        assert "{{criteria}}" not in out
        assert out == "T\n\n### STUDENT WORK:\n\nC"

    def test_note_before_student_work_heading(self):
        template = "{{task}}\n### STUDENT WORK:\n{{content}}"
        out = apply_custom_template(template, "T", "C", content_type="pdf")
        note = content_type_note("pdf")
        assert out == f"T\n{note}### STUDENT WORK:\nC"

    def test_note_before_content_without_heading(self):
        out = apply_custom_template("Work: {{content}}", "T", "C", content_type="google-docs")
        assert out == f"Work: {content_type_note('google-docs')}C"

    def test_note_inserted_once(self):
        out = insert_content_type_note("{{content}} {{content}}", "[N]")
        assert out == "[N]{{content}} {{content}}"

    def test_substituted_content_does_not_confuse_detection(self):
        template = "### STUDENT WORK:\n{{content}}\nTask: {{task}}"
        out = apply_custom_template(
            template, "my {{content}} task", "### STUDENT WORK: {{task}}", content_type="image"
        )
        assert out.count("**IMPORTANT:**") == 1
        assert out.endswith("Task: my {{content}} task")
        assert "### STUDENT WORK: {{task}}" in out


class TestPromptComposer:
    def test_blank_template_uses_default(self, settings):
        composer = PromptComposer(settings)
        text = composer.compose("T", TextContent("C"), custom_template="   ").instruction_text
        assert text == build_default_prompt("T", "C", language=settings.feedback_language)

    def test_custom_template_used(self, settings):
        prompt = PromptComposer(settings).compose(
            "Essay 1", TextContent("Great work"), custom_template="{{task}}|{{content}}"
        )
        assert prompt == ComposedPrompt("Essay 1|Great work")
        assert prompt.parts() == [{"text": "Essay 1|Great work"}]

    def test_image_branch(self, settings):
        prompt = PromptComposer(settings).compose(
            "Essay 1", ImageContent("image/png", "AAAA"), content_type="image"
        )
        assert prompt.inline_image == ImageContent("image/png", "AAAA")
        assert IMAGE_PLACEHOLDER in prompt.instruction_text
        assert "AAAA" not in prompt.instruction_text
        assert prompt.parts()[1] == {"inline_data": {"mime_type": "image/png", "data": "AAAA"}}

    def test_image_recheck_rejects_bad_data(self, settings):
        with pytest.raises(UnsupportedType, match="Invalid image format"):
            PromptComposer(settings).compose("T", ImageContent("image/svg+xml", "AAAA"))
