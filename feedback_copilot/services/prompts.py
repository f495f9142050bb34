"""
prompts.py
----------

Implements the **PromptComposer**, which turns an assignment, optional
evaluation criteria and normalized student work into the instruction text
(plus an optional inline image) sent to the generative model.

### Two paths
1. **Default template**: a fixed curator-persona document with three
   insertion points (assignment, optional criteria block, student work).
2. **Custom template**: user text containing `{{task}}`, `{{content}}` and
   optionally `{{criteria}}` placeholders.

### Custom template processing order
  1. Substitute `{{criteria}}`, or remove it and collapse an empty
     `### EVALUATION CRITERIA:` heading.
  2. Insert the content-type note before `### STUDENT WORK:` (or before
     `{{content}}` when the heading is absent).
  3. Replace every `{{task}}` and `{{content}}` in a single pass, so the
     substituted values are never scanned for placeholders.

Both paths are pure functions of their inputs.
"""

from dataclasses import dataclass

from .base import ServiceBase
from .content import ImageContent, NormalizedContent, TextContent, parse_image_data_uri
from ..core.errors import UnsupportedType

TASK_TOKEN = "{{task}}"
CONTENT_TOKEN = "{{content}}"
CRITERIA_TOKEN = "{{criteria}}"

CRITERIA_HEADING = "### EVALUATION CRITERIA:"
STUDENT_WORK_HEADING = "### STUDENT WORK:"

IMAGE_PLACEHOLDER = "[The student's work is provided as an image below]"

CONTENT_TYPE_DESCRIPTIONS = {
    "pdf": "a PDF file",
    "image": "an image (PNG, JPG)",
    "google-docs": "a Google Docs document",
    "google-slides": "a Google Slides presentation",
}


@dataclass(frozen=True)
class ComposedPrompt:
    """
    Final model input.

    Attributes:
        instruction_text (str): Fully rendered prompt text.
        inline_image (ImageContent | None): Image sent as a separate part.
    """
    instruction_text: str
    inline_image: ImageContent | None = None

    def parts(self) -> list[dict]:
        """Model payload parts: the text first, then the image if any."""
        parts = [{"text": self.instruction_text}]
        if self.inline_image is not None:
            parts.append({
                "inline_data": {
                    "mime_type": self.inline_image.mime_type,
                    "data": self.inline_image.data,
                }
            })
        return parts


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())


def content_type_description(content_type: str) -> str:
    return CONTENT_TYPE_DESCRIPTIONS.get(content_type, "a document")


def content_type_note(content_type: str | None) -> str:
    """Disclosure note naming the submission format; empty when unset."""
    if not content_type:
        return ""
    description = content_type_description(content_type)
    return (
        f"\n\n**IMPORTANT:** The student's work is provided as {description}. "
        "Take this into account in your analysis and do not recommend creating "
        "what has already been provided (for example, if a presentation was "
        'provided, do not recommend "create a presentation").\n'
    )


def student_work_body(content: NormalizedContent) -> str:
    if isinstance(content, ImageContent):
        return IMAGE_PLACEHOLDER
    return content.text or ""


def substitute_tokens(template: str, values: dict[str, str]) -> str:
    """
    Replace every occurrence of each token in `values` in one left-to-right
    pass. Replacement text is copied as-is and never rescanned.
    """
    out = []
    i = 0
    while i < len(template):
        start = template.find("{{", i)
        if start == -1:
            break
        for token, value in values.items():
            if template.startswith(token, start):
                out.append(template[i:start])
                out.append(value)
                i = start + len(token)
                break
        else:
            out.append(template[i:start + 1])
            i = start + 1
    out.append(template[i:])
    return "".join(out)


# ---------------------------------------------------------------------------
# Default template
# ---------------------------------------------------------------------------

PERSONA = """# SYSTEM PROMPT: Feedback Co-Pilot (tuned to the real curators' style)

You are an **AI curator writing in the style of the course's real curators**.

Your job is to write warm, friendly but professional feedback that feels "alive" and human.

The tone is always supportive, bright and positive, with a light touch of emotion (never overdone).

The feedback must be all of the following at once:

- warm and personal ("Congrats on the homework!", "Great start!", "Well done!");

- structured (Context → Strengths → Improvements → Next steps);

- specific (with examples, explanations and precise advice);

- empathetic (no judgement, only constructive points);

- stylish and as close as possible to the curators' own feedback.

---

## 1. Follow the real curators' style

Use the style from the examples:

- personal greetings: "hi!", "well done", "it's great that…", "a pleasure to read";

- a compliment before any remarks;

- light emotional markers: "done! 🤩", "nice", "super";

- structured lists;

- soft wording for criticism: "you could add", "it would be interesting", "I'd love to see a bit more";

- recommendations framed as "ideas to think about";

- a conversational, natural tone that never becomes overly familiar.

---

## 2. Assess against the course's clear criteria

### Understanding of the topic

Are the tools, logic and theory applied correctly?

### Presentation

Structure, subheadings, readability, visuals, grammar.

### Calculations in Google Sheets (if any)

Formulas and the correctness of the logic.

### Student's commentary

Does the student explain their reasoning, difficulties and decisions?

> This is not a "right/wrong" grade but an analysis of understanding.

---

## 3. Structure of the feedback

### Opening

A warm greeting + a mini-compliment + "done!" or similar.

**Example:**

"Hi Ira! Congrats on the homework, done! It was a real pleasure to read, you approached the task brilliantly 💛"

### Context

1–2 sentences about what the assignment was and what the student did.

### Strengths

3–6 specific strong points.

Stylistic phrasing:

- "it's really great that…"

- "I'd especially highlight that…"

- "you can see you really worked on…"

- "the structure reads smoothly…"

### Improvements

Soft, constructive advice.

Each point should contain:

- what to improve,

- why it matters,

- an example of how to do it better.

Stylistic phrases:

- "you could add a little more…"

- "it would be interesting to see…"

- "I'd love a bit more detail on…"

- "an idea to think about…"

### Next Steps

3–6 short, practical recommendations.

Format:

1. …

2. …

3. …

---

## 4. Tone and style

Stick to:

- a warm, friendly tone: "well done", "really great", "a pleasure to read";

- kind language without judgement;

- light emoji (1–2 at most);

- a conversational but literate style;

- specifics and examples;

- ideas and hypotheses for growth.

Do not use:

- dry formality;

- harsh criticism;

- an overly academic style.

---

## TASK:

### ASSIGNMENT:

"""

CLOSING = """

---

Write the feedback using the structure: Opening → Context → Strengths → Improvements → Next Steps.

Write the feedback in {language}."""


def build_default_prompt(
    task: str,
    body: str,
    criteria: str | None = None,
    content_type: str | None = None,
    language: str = "Ukrainian",
) -> str:
    """
    Render the default curator prompt.

    Args:
        task (str): Assignment text, inserted verbatim.
        body (str): Student work text or the image placeholder sentence.
        criteria (str, optional): Evaluation criteria; the whole criteria
            section is omitted when blank.
        content_type (str, optional): Content-type tag for the disclosure note.
        language (str): Language the model should answer in.
    """
    sections = [PERSONA, task]
    if _has_text(criteria):
        sections.append(f"\n\n{CRITERIA_HEADING}\n\n{criteria}")
    sections.append(content_type_note(content_type))
    sections.append(f"\n{STUDENT_WORK_HEADING}\n\n{body}")
    sections.append(CLOSING.format(language=language))
    return "".join(sections)


# ---------------------------------------------------------------------------
# Custom template
# ---------------------------------------------------------------------------

def collapse_empty_criteria_heading(template: str) -> str:
    """
    Drop every `### EVALUATION CRITERIA:` heading whose section holds only
    blank lines, together with those blank lines. A section ends at the next
    line starting with "#" or at the end of the text.
    """
    lines = template.splitlines(keepends=True)
    out = []
    i = 0
    while i < len(lines):
        if lines[i].strip() == CRITERIA_HEADING:
            j = i + 1
            while j < len(lines) and not lines[j].strip():
                j += 1
            if j == len(lines) or lines[j].lstrip().startswith("#"):
                i = j
                continue
        out.append(lines[i])
        i += 1
    return "".join(out)


def insert_content_type_note(template: str, note: str) -> str:
    """Insert `note` before the first student-work heading, else before the first `{{content}}`."""
    if not note:
        return template
    for anchor in (STUDENT_WORK_HEADING, CONTENT_TOKEN):
        pos = template.find(anchor)
        if pos != -1:
            return template[:pos] + note + template[pos:]
    return template


def apply_custom_template(
    template: str,
    task: str,
    body: str,
    criteria: str | None = None,
    content_type: str | None = None,
) -> str:
    """Fill a user-supplied template; see the module docstring for the order."""
    values = {TASK_TOKEN: task or "", CONTENT_TOKEN: body}

    if _has_text(criteria):
        values[CRITERIA_TOKEN] = criteria
        processed = template
    else:
        processed = template.replace(CRITERIA_TOKEN, "")
        processed = collapse_empty_criteria_heading(processed)

    processed = insert_content_type_note(processed, content_type_note(content_type))
    return substitute_tokens(processed, values)


# ---------------------------------------------------------------------------
# Composer
# ---------------------------------------------------------------------------

class PromptComposer(ServiceBase):
    """Builds a `ComposedPrompt` from a request's parts."""

    def compose(
        self,
        task: str,
        content: NormalizedContent,
        criteria: str | None = None,
        content_type: str | None = None,
        custom_template: str | None = None,
    ) -> ComposedPrompt:
        """
        Compose the model input.

        Raises:
            UnsupportedType: Image content no longer forms a valid data-URI.
        """
        body = student_work_body(content)

        if _has_text(custom_template):
            text = apply_custom_template(custom_template, task, body, criteria, content_type)
            self.logger.info(
                "Custom prompt rendered (%d chars, content type %s, placeholders left: %s)",
                len(text), content_type, CONTENT_TOKEN in text or TASK_TOKEN in text,
            )
        else:
            text = build_default_prompt(
                task, body, criteria, content_type, self.settings.feedback_language
            )
            self.logger.info("Default prompt rendered (%d chars, content type %s)", len(text), content_type)

        if isinstance(content, ImageContent):
            image = parse_image_data_uri(content.data_uri)
            if image is None:
                raise UnsupportedType("Invalid image format")
            return ComposedPrompt(text, image)

        if not isinstance(content, TextContent):
            raise TypeError(f"Unexpected content {type(content).__name__}")
        return ComposedPrompt(text)
