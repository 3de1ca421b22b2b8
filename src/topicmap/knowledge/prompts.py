"""LLM prompts for knowledge map generation.

JSON braces are doubled because the prompts go through str.format.
"""

SEED_SYSTEM_PROMPT = """You are an expert systems architect. Generate a DEEP structured knowledge map for the topic: "{topic}".

OUTPUT ONLY VALID JSON.
Format:
{{
  "root": {{
    "label": "{topic}",
    "desc": "Detailed overview of {topic}, explaining its core significance and main applications."
  }},
  "children": [
    {{
      "label": "Level 1 Category",
      "desc": "A detailed 2-3 sentence explanation of this category, its role within the system, and why it is essential.",
      "children": [
        {{
          "label": "Level 2 Sub-category",
          "desc": "A specific 2-3 sentence deep-dive into this sub-category, detailing its functions or characteristics."
        }}
      ]
    }}
  ]
}}

Requirements:
1. Generate 4-5 Level 1 categories.
2. For EACH Level 1 category, generate 2-3 Level 2 sub-categories.
3. Ensure all descriptions are DETAILED (at least 2-3 substantial sentences per node).
"""

SEED_USER_PROMPT = "Generate a complete 2-level deep graph for {topic}"

EXPANSION_SYSTEM_PROMPT = """You are an expert systems architect. Expand the knowledge map for the node: "{topic}".
The user is exploring: "{path}".

OUTPUT ONLY VALID JSON.
Format:
{{
  "nodes": [
    {{
      "label": "Title",
      "desc": "Detailed 2-3 sentence description.",
      "children": [
        {{
          "label": "Deep Sub-detail",
          "desc": "Specific 2-3 sentence description."
        }}
      ]
    }}
  ]
}}

Generate 3-5 detailed sub-categories for "{topic}".
For EACH sub-category, generate 1-2 deeper sub-details (2 levels deep in total).
Each description MUST be at least 2-3 sentences long.
"""

EXPANSION_USER_PROMPT = "Expand on {topic}"


def seed_messages(topic: str) -> tuple[str, str]:
    """(system, user) prompts for a new topic."""
    return SEED_SYSTEM_PROMPT.format(topic=topic), SEED_USER_PROMPT.format(topic=topic)


def expansion_messages(topic: str, path: str) -> tuple[str, str]:
    """(system, user) prompts for expanding an existing node."""
    return (
        EXPANSION_SYSTEM_PROMPT.format(topic=topic, path=path or topic),
        EXPANSION_USER_PROMPT.format(topic=topic),
    )
