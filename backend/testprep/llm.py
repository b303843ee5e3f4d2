"""Thin wrapper around the Gemini client shared by question generation and grading."""
import json
import re

import google.generativeai as genai
from django.conf import settings
from google.generativeai.types import GenerationConfig

_FENCE_RE = re.compile(r'```(?:json)?', re.IGNORECASE)


def is_configured():
    return bool(getattr(settings, 'GEMINI_API_KEY', ''))


def build_model(system_instruction, model_name=None):
    genai.configure(api_key=settings.GEMINI_API_KEY)
    return genai.GenerativeModel(
        model_name or settings.GEMINI_MODEL,
        system_instruction=system_instruction,
    )


def generate_json(model, prompt, temperature=0.7):
    """Send *prompt* and parse the reply as JSON."""
    response = model.generate_content(
        prompt,
        generation_config=GenerationConfig(
            temperature=temperature,
            response_mime_type='application/json',
        ),
    )
    return parse_json_response(response.text)


def parse_json_response(raw_text):
    if not raw_text or not raw_text.strip():
        raise ValueError('The AI response was empty.')
    cleaned = _FENCE_RE.sub('', raw_text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f'The AI returned malformed JSON. Parser error: {e}') from e
