"""Prompt text sent to the note generator for each session mode."""

from __future__ import annotations

import json
from typing import Iterable

from notestream.document import DocumentState, all_keys, render_markdown

_FORMATTING_RULES = """\
FORMATTING:
- ## for section headings, ### for sub-sections
- "- " for bullets, two extra spaces of indent for sub-bullets
- **bold** for key terms, `code` for identifiers and code
- Keep bullets short and study-ready; never copy the transcript verbatim
- Never repeat a fact that is already in the notes, even if worded differently"""

DOCUMENT_SYSTEM_PROMPT = f"""You take structured lecture notes in real time by editing a document tree.

Every node has a unique "key". Refer to keys to place or change nodes.

{_FORMATTING_RULES}

Respond with JSON only:
{{
  "edits": [
    {{"action": "add", "parentKey": "<key>", "node": {{"type": "heading", "content": "Topic", "level": 2, "children": []}}}},
    {{"action": "add", "parentKey": "<key>", "node": {{"type": "bullet", "content": "Point with **term**", "level": 1, "children": []}}}},
    {{"action": "edit", "key": "<key>", "newContent": "Corrected text"}},
    {{"action": "delete", "key": "<key>"}}
  ],
  "confidence": 0.9
}}

Node types: heading (level 2), subheading (level 3), bullet, subbullet (child of a bullet), text.
Only add information that is not already present; use edit to fix mistakes."""

ANALYSIS_SYSTEM_PROMPT = """You classify fragments of a live lecture transcript.

Decide whether the fragment:
- "outline": announces topics that will be covered
- "detail": explains one topic
- "transition": carries nothing worth noting

Respond with JSON only:
{"type": "outline", "topics": ["Topic A", "Topic B"], "confidence": 0.9}
{"type": "detail", "relatedTopic": "Topic A", "keyPoints": ["Concise point", "Another point"], "confidence": 0.8}
{"type": "transition", "confidence": 0.7}

Reuse an existing topic name when the fragment continues it. Confidence is 0 to 1."""

STREAM_SYSTEM_PROMPT = f"""You build lecture notes incrementally as a list of small changes.

Output only the NEW changes implied by the transcript fragment; never rewrite existing notes.

{_FORMATTING_RULES}

Respond with JSON only:
{{
  "changes": [
    {{"type": "add_heading", "heading": "Machine Learning", "sectionHeading": null}},
    {{"type": "add_bullet", "bullet": "A subset of **AI** that learns from data", "sectionHeading": "Machine Learning"}}
  ],
  "confidence": 0.9
}}

Change types: add_heading, add_bullet (with sectionHeading), edit_line (lineIndex, newText), delete_line (lineIndex)."""

NOTES_SYSTEM_PROMPT = f"""You are a student taking notes during a lecture.

Capture facts, definitions, techniques, processes and examples. Leave out filler and asides.
Correct obvious speech-to-text errors only when the context makes them clear.

{_FORMATTING_RULES}

Output only the markdown notes, with no commentary."""

MIND_MAP_SYSTEM_PROMPT = """You organize lecture content into a mind map of topics, subtopics and key points.

Respond with JSON only:
{
  "nodes": [
    {"type": "topic", "content": "Main Topic", "children": [
      {"type": "bullet", "content": "Key point with **term**"},
      {"type": "subtopic", "content": "Sub-topic", "children": [
        {"type": "bullet", "content": "Detail"}
      ]}
    ]}
  ],
  "confidence": 0.9
}

Keep each node to 5-15 words. Only add content that is not already in the map."""

CORRECTION_SYSTEM_PROMPT = """You apply a user's corrections to lecture notes.

- Apply the correction and fix misheard words or terms it points out
- Move content between sections if the user names the right topic
- Keep everything the correction does not mention, with its structure and formatting
- Use ## for headings, - for bullets and **bold** for key terms

Output only the corrected markdown notes, with no commentary."""


def document_prompt(state: DocumentState, transcript: str) -> str:
    markdown = render_markdown(state.root)
    if not markdown:
        return (
            f'FULL TRANSCRIPT:\n"{transcript}"\n\n'
            "TASK: Create initial structured notes from this transcript."
        )
    structure = json.dumps(
        {
            "root": state.root.model_dump(mode="json", by_alias=True, exclude_none=True),
            "keys": all_keys(state.root),
        },
        indent=2,
    )
    return (
        f'FULL TRANSCRIPT:\n"{transcript}"\n\n'
        f"CURRENT DOCUMENT STRUCTURE:\n{structure}\n\n"
        f"CURRENT NOTES (MARKDOWN):\n{markdown}\n\n"
        "TASK: Generate edits that add new information or fix errors. "
        "Only add content that is not already present."
    )


def analysis_prompt(chunk: str, existing_topics: Iterable[str]) -> str:
    topics = [topic for topic in existing_topics if topic]
    listing = "\n".join(f"- {topic}" for topic in topics) if topics else "(none yet)"
    return f'EXISTING TOPICS:\n{listing}\n\nTRANSCRIPT FRAGMENT:\n"{chunk}"'


def stream_prompt(chunk: str, existing_headings: Iterable[str]) -> str:
    headings = [heading for heading in existing_headings if heading]
    if not headings:
        return f'TRANSCRIPT:\n"{chunk}"\n\nGenerate the initial headings and bullets.'
    listing = "\n".join(f"- {heading}" for heading in headings)
    return (
        f"EXISTING HEADINGS:\n{listing}\n\n"
        f'NEW TRANSCRIPT:\n"{chunk}"\n\n'
        "Generate only the changes needed for this new content."
    )


def notes_prompt(transcript: str) -> str:
    return (
        f"LECTURE TRANSCRIPT:\n{transcript}\n\n"
        "TASK: Write the complete notes so far. Never drop factual or technical details. "
        "Output only the markdown notes."
    )


def mind_map_prompt(transcript: str, current_markdown: str) -> str:
    if not current_markdown:
        return (
            f'FULL TRANSCRIPT:\n"{transcript}"\n\n'
            "TASK: Create the initial mind map with topics, subtopics and key points."
        )
    return (
        f'FULL TRANSCRIPT:\n"{transcript}"\n\n'
        f"CURRENT MIND MAP:\n{current_markdown}\n\n"
        "TASK: Add new topics, subtopics and points. Do not duplicate existing content."
    )


def correction_prompt(notes: str, message: str) -> str:
    return (
        f"CURRENT NOTES:\n{notes}\n\n"
        f"USER CORRECTION:\n{message}\n\n"
        "Apply the correction and output the updated notes in markdown."
    )
