# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Note-authoring helpers backed by Gemini.

Both calls are single attempts. When no API key is configured, or the call
fails for any reason, they fall back to a safe value instead of raising.
"""

import logging

from models import api_config
from models import gemini
from models import prompts

logger = logging.getLogger(__name__)

DEFAULT_STUDENT_LEVEL = "Intermediate"
PRACTICE_QUESTIONS_HEADER = "**Practice Questions:**"


def enhance_note(content: str, level: str | None = None, api_key: str | None = None) -> str:
    """Rewrites raw class notes for a student's level, or returns them unchanged."""
    api_key = api_key or api_config.get_api_key()
    if not api_key:
        logger.warning("No API Key provided for Gemini.")
        return content

    prompt = prompts.make_enhance_note_prompt(content, level or DEFAULT_STUDENT_LEVEL)
    try:
        return gemini.call_predict(prompt, model=api_config.get_model(), api_key=api_key)
    except Exception:
        logger.exception("Gemini enhancement failed")
        return content


def generate_practice_questions(content: str, api_key: str | None = None) -> str:
    api_key = api_key or api_config.get_api_key()
    if not api_key:
        logger.warning("No API Key provided for Gemini.")
        return ""

    prompt = prompts.make_practice_questions_prompt(content)
    try:
        return gemini.call_predict(prompt, model=api_config.get_model(), api_key=api_key)
    except Exception:
        logger.exception("Gemini question generation failed")
        return ""


def append_practice_questions(content: str, questions: str) -> str:
    if not questions:
        return content
    return f"{content}\n\n{PRACTICE_QUESTIONS_HEADER}\n{questions}"
