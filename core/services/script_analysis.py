"""Forward interview scripts to a chat-completions API for coaching feedback.

The endpoint, model, key and timeout come from Django settings
(``OPENAI_BASE_URL``, ``OPENAI_MODEL``, ``OPENAI_API_KEY``,
``OPENAI_HTTP_TIMEOUT``).  Responses are Markdown; ``render_markdown``
turns them into HTML for the analysis panel.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import markdown
import nh3
import requests
from django.conf import settings

from core.services.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert interview coach and analyst. Your role is to help users understand and improve their interview performance by analyzing interview scripts.

ALWAYS format your responses in well-structured Markdown with:
- Use **bold** for key points and important information
- Use bullet points (- or *) for lists
- Use numbered lists (1., 2., 3.) for sequential steps or rankings
- Use ## for main sections and ### for subsections
- Use `code blocks` for specific quotes or technical terms
- Use > blockquotes for emphasized takeaways
- Use horizontal rules (---) to separate major sections when appropriate

When analyzing interviews, consider:
- Strengths and areas for improvement
- Communication clarity and effectiveness
- Technical accuracy (if applicable)
- Follow-up questions that could have been asked
- Overall impression and recommendations

Be concise, actionable, and constructive in your feedback."""

TEMPERATURE = 0.7
MAX_TOKENS = 1500
EMPTY_RESPONSE = 'No response generated'
MARKDOWN_EXTENSIONS = ['extra', 'sane_lists']
SAFE_URL_SCHEMES = {'http', 'https', 'mailto'}


def build_messages(script: str, prompt: str) -> list[Dict[str, str]]:
    return [
        {'role': 'system', 'content': SYSTEM_PROMPT},
        {'role': 'user', 'content': f"Interview Script:\n\n{script}\n\nUser Question/Request:\n{prompt}"},
    ]


def analyze_interview_script(script: str, prompt: str, session: Optional[requests.Session] = None) -> str:
    """Return the model's Markdown answer for ``prompt`` about ``script``.

    Raises ``ValidationError`` for blank input and ``UpstreamError`` for any
    transport, HTTP or payload failure.  No retries are attempted.
    """

    script = (script or '').strip()
    prompt = (prompt or '').strip()
    if not script:
        raise ValidationError('This interview has no script to analyze.')
    if not prompt:
        raise ValidationError('Please enter a question or request.')

    api_key = getattr(settings, 'OPENAI_API_KEY', '')
    if not api_key:
        raise UpstreamError('The AI analysis service is not configured.')

    endpoint = getattr(settings, 'OPENAI_BASE_URL', 'https://api.openai.com/v1').rstrip('/') + '/chat/completions'
    timeout = getattr(settings, 'OPENAI_HTTP_TIMEOUT', 60)
    payload: Dict[str, Any] = {
        'model': getattr(settings, 'OPENAI_MODEL', 'gpt-4'),
        'messages': build_messages(script, prompt),
        'temperature': TEMPERATURE,
        'max_tokens': MAX_TOKENS,
    }
    http = session or requests.Session()
    try:
        response = http.post(
            endpoint,
            json=payload,
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=timeout,
        )
        response.raise_for_status()
        data = response.json()
    except requests.HTTPError as exc:
        message = _error_message(exc.response) or str(exc)
        logger.error('AI analysis request failed: %s', message)
        raise UpstreamError(message) from exc
    except (requests.RequestException, ValueError) as exc:
        logger.error('AI analysis request failed: %s', exc)
        raise UpstreamError(str(exc) or 'Failed to analyze script') from exc

    try:
        content = data['choices'][0]['message'].get('content')
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise UpstreamError('Unexpected response from the AI analysis service.') from exc
    return content or EMPTY_RESPONSE


def _error_message(response: Optional[requests.Response]) -> str:
    if response is None:
        return ''
    try:
        body = response.json()
    except ValueError:
        return ''
    error = body.get('error') if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get('message') or ''
    return str(error or '')


def render_markdown(text: str) -> str:
    """Convert model output to sanitised HTML.

    Only ``&`` and ``<`` are escaped so Markdown blockquotes (``>``) keep
    working while any embedded tags render as text. The rendered HTML is
    then cleaned so links can only use ``SAFE_URL_SCHEMES``.
    """

    escaped = (text or '').replace('&', '&amp;').replace('<', '&lt;')
    html = markdown.markdown(escaped, extensions=MARKDOWN_EXTENSIONS)
    return nh3.clean(html, url_schemes=SAFE_URL_SCHEMES)
