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

import time
import logging
from google import genai
from models import api_config

logger = logging.getLogger(__name__)


class GeminiInvalidResponseException(Exception):
    pass


def call_predict(
    query: str,
    model: str = api_config.DEFAULT_MODEL,
    api_key: str | None = None,
) -> str:
    """Sends a single text prompt to Gemini and returns the response text.

    Raises:
        GeminiInvalidResponseException: the response carried no text.
    """
    if not api_key:
        api_key = api_config.get_api_key()

    client = genai.Client(api_key=api_key)
    start_time = time.time()
    truncated_query = (query[:200] + "...") if len(query) > 200 else query
    logger.info("Calling Gemini, prompt: '%s'", truncated_query)

    response = client.models.generate_content(model=model, contents=query)
    logger.info("Gemini call took: %.2fs", time.time() - start_time)
    if not response.text:
        raise GeminiInvalidResponseException()
    return response.text
