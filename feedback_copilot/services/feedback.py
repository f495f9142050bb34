"""
feedback.py
-----------

Implements the **FeedbackService**, the orchestration layer that connects
content normalization, prompt composition and generation.

### Overview
Each request runs a fixed sequence of stages; a stage starts only once the
previous one has produced its result:
  1. Validate that task and content are present.
  2. Resolve a shared document link to its text (at most two fetches).
  3. Classify the content as image or text and infer the content-type tag.
  4. Compose the prompt (default or custom template).
  5. Call the model and return its text unmodified.

### Error classification
- missing fields -> `ValidationError` (400)
- unreachable or malformed document link -> `UpstreamError` (400)
- credential problems -> `ConfigurationError` with a fixed message (500)
- any other model failure -> `UpstreamError` "Failed to generate feedback: ..." (500)
"""

from .base import ServiceBase
from .content import ContentNormalizer, NormalizedContent, infer_content_type
from .documents import DocumentResolver
from .llm import GEMINI_KEY_MESSAGE, BaseChat, build_llm
from .prompts import ComposedPrompt, PromptComposer
from ..core.errors import ConfigurationError, CopilotError, UpstreamError, ValidationError

CREDENTIAL_MARKERS = ("API_KEY", "API key")


def is_credential_error(message: str) -> bool:
    return any(marker in message for marker in CREDENTIAL_MARKERS)


class FeedbackService(ServiceBase):
    """
    Orchestrates normalization, prompt composition and model calls.

    Attributes:
        resolver (DocumentResolver): Shared document fetcher.
        normalizer (ContentNormalizer): Text and image data-URI normalizer.
        composer (PromptComposer): Prompt builder.
        llm (BaseChat): Generative model client.
    """

    def __init__(
        self,
        settings=None,
        resolver: DocumentResolver | None = None,
        composer: PromptComposer | None = None,
        llm: BaseChat | None = None,
    ):
        super().__init__(settings)
        self.resolver = resolver or DocumentResolver(self.settings)
        self.normalizer = ContentNormalizer(self.settings, resolver=self.resolver)
        self.composer = composer or PromptComposer(self.settings)
        self.llm = llm or build_llm(self.settings)

    # ---------- Stages ----------
    def validate(self, task: str | None, content) -> None:
        if not task or not content:
            raise ValidationError("Missing required fields: task and content are required")

    def normalize(self, content: str, content_type: str | None) -> tuple[NormalizedContent, str | None]:
        """
        Classify content; document links are resolved by the normalizer.

        Returns:
            tuple: (normalized content, content-type tag or None)
        """
        content_type = content_type or infer_content_type(content)
        return self.normalizer.normalize_text(content), content_type

    def invoke(self, prompt: ComposedPrompt) -> str:
        try:
            return self.llm.generate(prompt)
        except ConfigurationError as e:
            self.logger.error("Model configuration error: %s", e.message)
            raise ConfigurationError(GEMINI_KEY_MESSAGE) from e
        except Exception as e:
            message = e.message if isinstance(e, CopilotError) else str(e)
            self.logger.error("Analysis error: %s", message)
            if is_credential_error(message):
                raise ConfigurationError(GEMINI_KEY_MESSAGE) from e
            raise UpstreamError(f"Failed to generate feedback: {message or 'Unknown error'}") from e

    # ---------- Entry point ----------
    def handle(
        self,
        task: str,
        content: str,
        criteria: str | None = None,
        content_type: str | None = None,
        custom_template: str | None = None,
    ) -> str:
        """
        Generate feedback for one submission.

        Args:
            task (str): Assignment description.
            content (str): Pasted text, image data-URI or document link.
            criteria (str, optional): Evaluation criteria.
            content_type (str, optional): Explicit content-type tag.
            custom_template (str, optional): User prompt template.

        Returns:
            str: Feedback text exactly as generated.
        """
        self.validate(task, content)
        normalized, content_type = self.normalize(content, content_type)
        prompt = self.composer.compose(
            task,
            normalized,
            criteria=criteria,
            content_type=content_type,
            custom_template=custom_template,
        )
        return self.invoke(prompt)

    def __call__(self, *args, **kwargs) -> str:
        return self.handle(*args, **kwargs)
