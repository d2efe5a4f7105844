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

import textwrap

_ENHANCE_NOTE_PROMPT = textwrap.dedent(
    """\
    You are an expert English teacher assistant.
    Refine the following class notes for a student at level {level}.

    Goals:
    1. Correct any grammar mistakes in the note itself.
    2. Organize it with clear bullet points.
    3. Add 2-3 practical examples for the concepts mentioned.
    4. Add a friendly, encouraging closing.

    Raw Notes:
    "{content}"

    Output format: Plain text (Markdown allowed).
    """
)

_PRACTICE_QUESTIONS_PROMPT = textwrap.dedent(
    """\
    Based on these class notes, generate 3 short practice questions (fill-in-the-blank or multiple choice) for the student to test their understanding.

    Notes: "{content}"

    Output: Just the questions.
    """
)


def make_enhance_note_prompt(content: str, level: str) -> str:
    return _ENHANCE_NOTE_PROMPT.format(content=content, level=level)


def make_practice_questions_prompt(content: str) -> str:
    return _PRACTICE_QUESTIONS_PROMPT.format(content=content)
