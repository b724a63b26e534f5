"""Prompts for recipe extraction.

Two prompts are used: the initial extraction prompt, and a feedback prompt
that repeats the extraction task together with the previous (invalid) recipe
and the validation errors it produced.
"""

from __future__ import annotations

from datetime import date

EXTRACTION_TEMPLATE = """\
You are extracting cooking recipes from a web page. Today is {today}.
The page was fetched from: {source_url}

The content below has been reduced before being sent to you. It may be a
JSON-LD Recipe object, a fragment of the page markup, or the full page.

<rules>
- Extract ONLY recipes that are actually present. Never invent ingredients,
  steps, quantities or times.
- A page is a recipe page only if it contains at least one dish with both an
  ingredient list and preparation steps.
- If the page has several distinct recipes, return each one separately in
  order of appearance.
- Number instruction steps from 1. Write durations like "15m", "1h 30m" or
  "2d". Leave a field empty rather than guessing.
- Split every ingredient into item, amount (a number) and unit. Put
  preparation notes such as "finely chopped" in notes.
- Nutrition values must be non-negative numbers.
</rules>

<confidence>
Set recipe_confidence between 0.0 and 1.0:
- close to 1.0 when the recipe is complete
- around 0.5-0.8 when the page clearly looks like a recipe page but the
  ingredients or steps seem to be missing from the content you were given
- close to 0.0 when the page is not about a recipe at all
Set is_recipe to false with an empty recipes list whenever no complete recipe
can be extracted.
</confidence>

<content>
{content}
</content>
"""

FEEDBACK_TEMPLATE = """\
{base_prompt}

<previous_attempt>
Your previous answer contained this recipe, which failed validation:
{previous_recipe}
</previous_attempt>

<validation_errors>
{validation_error}
</validation_errors>

Fix every listed problem using only information from the content. If the
content does not contain a complete recipe, set is_recipe to false.
"""


def build_extraction_prompt(content: str, source_url: str, today: date | None = None) -> str:
    """Format the initial extraction prompt.

    Args:
        content: Cleaned page payload
        source_url: URL the page came from
        today: Date to mention in the prompt (defaults to today)
    """
    return EXTRACTION_TEMPLATE.format(
        today=(today or date.today()).isoformat(),
        source_url=source_url or "unknown",
        content=content,
    )


def build_feedback_prompt(
    content: str,
    previous_recipe: str,
    validation_error: str,
    source_url: str = "",
    today: date | None = None,
) -> str:
    """Format the feedback prompt used after a validation failure.

    Args:
        content: Cleaned page payload (same as the first attempt)
        previous_recipe: JSON rendering of the recipe that failed validation
        validation_error: Combined validation error message
    """
    return FEEDBACK_TEMPLATE.format(
        base_prompt=build_extraction_prompt(content, source_url, today),
        previous_recipe=previous_recipe,
        validation_error=validation_error,
    )
