"""
Generation gateway: turns business descriptions, slides and feedback into
AI prompts, and AI replies back into slides or speaker notes.

The gateway is stateless and holds a single text-completion client. Replies
are parsed strictly with json.loads; anything that does not parse into the
expected shape is an InvalidResponse, never an empty result.
"""

import json
import logging
from typing import Any, List, Mapping, Optional

import anthropic
import openai

from deck_errors import ConfigurationError, InvalidResponse, UpstreamError
from deck_models import Slide

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ('openai', 'anthropic')

PROMPT_FIELDS = (
    ('Company Name', 'company_name'),
    ('Industry', 'industry'),
    ('Problem Statement', 'problem'),
    ('Solution', 'solution'),
    ('Business Model', 'business_model'),
    ('Financials', 'financials'),
)

DECK_INSTRUCTIONS = """

Using the above business idea, generate a full investor pitch deck.
Create 8-10 slides, starting with an "Introduction" slide. Write content in a persuasive tone suitable for investors.
Return ONLY a JSON array (no markdown, no commentary). Each element must be an object with the keys:
"slideNumber" (integer), "title" (string), "content" (string) and "image" (a placeholder image URL)."""

REGENERATE_TEMPLATE = """Revise this pitch deck slide based on user feedback.

Slide Title: {title}
Slide Content: {content}
User Feedback: {feedback}

Improve clarity, persuasive tone, and include any requested details.
Return ONLY a JSON object (no markdown, no commentary) with the keys "title" and "content"."""

SPEAKER_NOTES_TEMPLATE = """You are an AI pitch assistant. Based on this slide, generate speaker notes a founder could use when presenting to investors.

Slide Title: {title}
Slide Content: {content}

Keep notes concise (3-5 sentences), persuasive, and natural. Return only the notes."""


def build_outline_prompt(company_name: str = '', industry: str = '', problem: str = '',
                         solution: str = '', business_model: str = '', financials: str = '') -> str:
    """Format the structured business form into the outline prompt"""
    values = {
        'company_name': company_name,
        'industry': industry,
        'problem': problem,
        'solution': solution,
        'business_model': business_model,
        'financials': financials,
    }
    return "\n".join(f"{label}: {values[key] or ''}" for label, key in PROMPT_FIELDS)


# Completion clients

class OpenAICompletionClient:
    """Text completion through the OpenAI chat completions API"""

    def __init__(self, api_key: str, model: str = 'gpt-3.5-turbo', temperature: float = 0.7,
                 timeout: float = 60, client=None):
        self.model = model
        self.temperature = temperature
        self._client = client or openai.OpenAI(api_key=api_key, timeout=timeout)

    def complete(self, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise UpstreamError(f"OpenAI request failed: {e}",
                                status_code=getattr(e, 'status_code', None)) from e

        usage = getattr(response, 'usage', None)
        if usage is not None:
            logger.info(f"{self.model} token usage - Input: {usage.prompt_tokens}, "
                        f"Output: {usage.completion_tokens}")

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AnthropicCompletionClient:
    """Text completion through the Anthropic messages API"""

    def __init__(self, api_key: str, model: str = 'claude-3-5-haiku-latest', temperature: float = 0.7,
                 max_tokens: int = 4000, timeout: float = 60, client=None):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or anthropic.Anthropic(api_key=api_key, timeout=timeout)

    def complete(self, prompt: str) -> str:
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as e:
            logger.error(f"Anthropic request failed: {e}")
            raise UpstreamError(f"Anthropic request failed: {e}",
                                status_code=getattr(e, 'status_code', None)) from e

        return "".join(
            block.text for block in response.content if getattr(block, 'type', None) == 'text'
        )


def _setting(config: Any, name: str, default: Any = None) -> Any:
    if isinstance(config, Mapping):
        return config.get(name, default)
    return getattr(config, name, default)


def build_completion_client(config: Any):
    """Create the completion client for the configured provider.

    Raises ConfigurationError when the provider is unknown or its API key is
    missing; the application must not start without a credential.
    """
    provider = (_setting(config, 'AI_PROVIDER') or 'openai').lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Unknown AI_PROVIDER '{provider}', expected one of {', '.join(SUPPORTED_PROVIDERS)}"
        )

    temperature = float(_setting(config, 'AI_TEMPERATURE', 0.7))
    timeout = float(_setting(config, 'AI_TIMEOUT', 60))

    if provider == 'openai':
        api_key = _setting(config, 'OPENAI_API_KEY')
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set")
        return OpenAICompletionClient(
            api_key=api_key,
            model=_setting(config, 'OPENAI_MODEL', 'gpt-3.5-turbo'),
            temperature=temperature,
            timeout=timeout,
        )

    api_key = _setting(config, 'ANTHROPIC_API_KEY')
    if not api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY is not set")
    return AnthropicCompletionClient(
        api_key=api_key,
        model=_setting(config, 'ANTHROPIC_MODEL', 'claude-3-5-haiku-latest'),
        temperature=temperature,
        max_tokens=int(_setting(config, 'AI_MAX_TOKENS', 4000)),
        timeout=timeout,
    )


# Gateway

def _parse_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        logger.error(f"AI reply for {what} is not valid JSON: {e}")
        raise InvalidResponse(f"Failed to parse AI {what} response", raw_text=text or "") from e


class GenerationGateway:
    """Stateless façade over the AI text completion client"""

    def __init__(self, client):
        if client is None:
            raise ConfigurationError("A completion client is required")
        self.client = client

    def generate_deck(self, structured_prompt: str) -> List[Slide]:
        """Generate the full slide list for a structured business description"""
        text = self.client.complete(f"{structured_prompt}{DECK_INSTRUCTIONS}")
        data = _parse_json(text, "deck")

        if not isinstance(data, list):
            raise InvalidResponse("AI deck response is not a JSON array", raw_text=text)
        if not all(isinstance(item, dict) for item in data):
            raise InvalidResponse("AI deck response contains non-object slides", raw_text=text)

        slides = [Slide.from_dict(item) for item in data]
        logger.info(f"Generated deck with {len(slides)} slides")
        return slides

    def regenerate_slide(self, slide: Slide, feedback: Optional[str]) -> Slide:
        """Revise one slide according to user feedback"""
        prompt = REGENERATE_TEMPLATE.format(
            title=slide.title,
            content=slide.content,
            feedback=feedback or '',
        )
        text = self.client.complete(prompt)
        data = _parse_json(text, "slide")

        if not isinstance(data, dict):
            raise InvalidResponse("AI slide response is not a JSON object", raw_text=text)
        if 'title' not in data and 'content' not in data:
            raise InvalidResponse("AI slide response has neither title nor content", raw_text=text)

        revised = Slide.from_dict(data)
        return revised.with_changes(id=slide.id, slide_number=slide.slide_number)

    def generate_speaker_notes(self, title: str, content: str) -> str:
        text = self.client.complete(
            SPEAKER_NOTES_TEMPLATE.format(title=title or '', content=content or '')
        )
        notes = (text or '').strip()
        if not notes:
            raise InvalidResponse("AI returned empty speaker notes", raw_text=text or "")
        return notes
