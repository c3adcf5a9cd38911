"""Default prompt templates for the three suggestion types."""

import json
import random
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, Field

from ..config import Settings, get_settings
from ..context.builder import surrounding_context
from ..models.passage import HighlightedPassage, Passage
from ..session import CodingSession


class FewShotExample(BaseModel):
    """A coded passage shown to the model as an example."""

    passage_id: Optional[str] = None
    preceding_text: str = ""
    coded_passage: str
    trailing_text: str = ""
    codes: list[str] = Field(default_factory=list)


class PromptConfig(BaseModel):
    """User-provided research framing for the prompts."""

    research_questions: str = ""
    context_info: str = ""
    coding_guidelines: str = ""
    highlight_guidelines: str = ""
    few_shot_mode: Literal["random", "manual"] = "random"
    examples: list[FewShotExample] = Field(default_factory=list)


class PromptBuilder:
    """Renders highlight, code and autocomplete prompts for a session."""

    HIGHLIGHT_PROMPT = '''You are assisting a researcher with inductive qualitative coding.

RESEARCH QUESTIONS:
{research_questions}

CONTEXT:
{context_info}

HIGHLIGHT GUIDELINES:
{highlight_guidelines}

CODING GUIDELINES:
{coding_guidelines}

CODEBOOK:
{codebook}

EXAMPLES:
{examples}
{row_note}
Find the FIRST passage in the SEARCH AREA worth coding and suggest codes for it.
The preceding text is for orientation only; never suggest anything from it.

PRECEDING TEXT:
"""
{preceding_text}
"""

SEARCH AREA:
"""
{search_area}
"""

Respond ONLY with JSON:
{{"passage": "<exact substring of the search area, or empty string if nothing is relevant>", "codes": ["<code>", "..."]}}
Codes must not contain the ";" character.'''

    CODE_PROMPT = '''You are assisting a researcher with inductive qualitative coding.

RESEARCH QUESTIONS:
{research_questions}

CONTEXT:
{context_info}

CODING GUIDELINES:
{coding_guidelines}

CODEBOOK:
{codebook}

EXAMPLES:
{examples}
{row_note}
Suggest codes for the passage marked with <<< >>>.

PASSAGE:
"""
{marked_passage}
"""

Codes already assigned: {existing_codes}

Respond ONLY with a JSON array of code strings, e.g. ["code one", "code two"].'''

    AUTOCOMPLETE_PROMPT = '''You are assisting a researcher with inductive qualitative coding.

RESEARCH QUESTIONS:
{research_questions}

CODING GUIDELINES:
{coding_guidelines}

CODEBOOK:
{codebook}
{row_note}
The researcher is typing a code for the passage marked with <<< >>>.

PASSAGE:
"""
{marked_passage}
"""

Codes already assigned: {existing_codes}
Typed so far: "{user_input}"

Respond ONLY with the completed code, starting with the typed text. No quotes, no explanations, no ";".'''

    ROW_NOTE = (
        "\nThe data comes from a table. The character \\u001E marks the end of a row. "
        "A suggested passage may only contain it as its very last character.\n"
    )

    def __init__(
        self,
        session: CodingSession,
        config: Optional[PromptConfig] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.config = config or PromptConfig()
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()

    def codebook_string(self) -> str:
        labels = list(dict.fromkeys([*self.session.codebook, *sorted(self.session.imported_codes)]))
        if not labels:
            return "No codes in the codebook yet"
        return ", \n".join(json.dumps(label, ensure_ascii=False) for label in labels)

    def examples_string(self, exclude_passage_id: Optional[str] = None) -> str:
        if self.config.few_shot_mode == "manual":
            examples = [
                e
                for e in self.config.examples
                if exclude_passage_id is None or e.passage_id != exclude_passage_id
            ]
        else:
            examples = self._random_examples(exclude_passage_id)
        if not examples:
            return "No few-shot examples specified yet"
        return "\n".join(
            json.dumps(
                {
                    "passageWithSurroundingContext": (
                        f"{e.preceding_text}<<<{e.coded_passage}>>>{e.trailing_text}"
                    ),
                    "codes": e.codes,
                },
                ensure_ascii=False,
            )
            for e in examples
        )

    def _random_examples(self, exclude_passage_id: Optional[str]) -> list[FewShotExample]:
        session = self.session
        candidates = [
            p
            for p in session.passages
            if isinstance(p, HighlightedPassage)
            and p.id != exclude_passage_id
            and session.codes_for(p.id)
        ]
        count = min(self.settings.random_examples_count, len(candidates))
        examples = []
        for passage in self.rng.sample(candidates, count):
            context = surrounding_context(
                passage,
                session.passages,
                self.settings.examples_preceding_words,
                self.settings.examples_trailing_words,
                session.row_structured,
                self.settings.cut_window_size,
            )
            examples.append(
                FewShotExample(
                    passage_id=passage.id,
                    preceding_text=context.preceding,
                    coded_passage=context.passage_text,
                    trailing_text=context.trailing,
                    codes=session.codes_for(passage.id),
                )
            )
        return examples

    def _common(self, exclude_passage_id: Optional[str] = None) -> dict:
        return {
            "research_questions": self.config.research_questions or "Not specified",
            "context_info": self.config.context_info or "Not specified",
            "coding_guidelines": self.config.coding_guidelines or "Not specified",
            "highlight_guidelines": self.config.highlight_guidelines or "Not specified",
            "codebook": self.codebook_string(),
            "examples": self.examples_string(exclude_passage_id),
            "row_note": self.ROW_NOTE if self.session.row_structured else "",
        }

    def highlight_prompt(self, preceding_text: str, search_area: str) -> str:
        return self.HIGHLIGHT_PROMPT.format(
            preceding_text=preceding_text,
            search_area=search_area,
            **self._common(),
        )

    def code_prompt(self, passage: Passage, marked_passage: str, existing_codes: Sequence[str]) -> str:
        return self.CODE_PROMPT.format(
            marked_passage=marked_passage,
            existing_codes=json.dumps(list(existing_codes), ensure_ascii=False),
            **self._common(passage.id),
        )

    def autocomplete_prompt(
        self,
        passage: Passage,
        marked_passage: str,
        existing_codes: Sequence[str],
        user_input: str,
    ) -> str:
        return self.AUTOCOMPLETE_PROMPT.format(
            marked_passage=marked_passage,
            existing_codes=json.dumps(list(existing_codes), ensure_ascii=False),
            user_input=user_input,
            **self._common(passage.id),
        )
