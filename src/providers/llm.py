"""Text-generation backends used by the generative sentiment scorer.

Backends:
    OpenAITextGenerator — hosted chat-completions API via the ``openai`` SDK.
    LocalTextGenerator  — local HuggingFace ``text-generation`` pipeline on CPU.

Both are thin adapters: they return the raw generated text and let any
client error propagate; the scorer decides what a failure means.
"""

from typing import Optional

from src.core.config import AppConfig
from src.core.logger import logger
from src.providers.base import TextGenerator

_DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"
_DEFAULT_LOCAL_MODEL = "Qwen/Qwen2.5-0.5B-Instruct"


class OpenAITextGenerator(TextGenerator):
    """Chat-completions generator.

    Args:
        api_key: OpenAI API key.
        model: Chat model name.
        timeout: Per-request timeout in seconds.
        max_tokens: Completion budget; a bare number needs very few tokens.
        temperature: Sampling temperature.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = _DEFAULT_OPENAI_MODEL,
        timeout: float = 15.0,
        max_tokens: int = 10,
        temperature: float = 0.1,
        client=None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        if client is None:
            import openai
            client = openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._client = client

    def generate(self, system: str, prompt: str) -> str:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        content = response.choices[0].message.content or ""
        return content.strip()


class LocalTextGenerator(TextGenerator):
    """Local CPU text generation with a small instruction-tuned model.

    The underlying HuggingFace pipeline is loaded lazily on the first call to
    :meth:`generate` so that importing this module has zero cost.

    Args:
        model_name: HuggingFace model identifier.
        max_new_tokens: Generation budget.
    """

    name = "local"

    def __init__(self, model_name: str = _DEFAULT_LOCAL_MODEL, max_new_tokens: int = 8) -> None:
        self.model_name = model_name
        self.max_new_tokens = max_new_tokens
        self._pipeline = None  # lazy-loaded

    def generate(self, system: str, prompt: str) -> str:
        pipe = self._get_pipeline()
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]
        raw = pipe(messages, max_new_tokens=self.max_new_tokens, do_sample=False)
        # Chat input returns the whole conversation; the reply is the last turn.
        generated = raw[0]["generated_text"]
        if isinstance(generated, list):
            generated = generated[-1].get("content", "")
        return str(generated).strip()

    def _get_pipeline(self):
        """Lazy-load the HuggingFace pipeline on first call."""
        if self._pipeline is None:
            from transformers import pipeline as hf_pipeline
            logger.info(
                f"LocalTextGenerator: loading model '{self.model_name}' on CPU "
                f"(first call only — subsequent calls reuse cached pipeline)"
            )
            self._pipeline = hf_pipeline(
                task="text-generation",
                model=self.model_name,
                device=-1,          # CPU only
            )
            logger.info("LocalTextGenerator: model loaded ✓")
        return self._pipeline


def build_text_generator(config: AppConfig) -> Optional[TextGenerator]:
    """Return the generator named by ``config.sentiment.backend``, or None.

    ``openai`` without an API key degrades to None so the caller uses the
    lexicon scorer alone.
    """
    backend = (config.sentiment.backend or "none").lower()
    if backend == "openai":
        if not config.openai_api_key:
            logger.warning("build_text_generator: OPENAI_API_KEY not set — generative scoring disabled")
            return None
        model = config.sentiment.model or _DEFAULT_OPENAI_MODEL
        return OpenAITextGenerator(
            api_key=config.openai_api_key,
            model=model,
            timeout=config.engine.fetch_timeout_seconds,
        )
    if backend == "local":
        model = config.sentiment.model
        if not model or model == _DEFAULT_OPENAI_MODEL:
            model = _DEFAULT_LOCAL_MODEL
        return LocalTextGenerator(model_name=model)
    if backend != "none":
        logger.warning(f"build_text_generator: unknown backend {backend!r} — generative scoring disabled")
    return None
