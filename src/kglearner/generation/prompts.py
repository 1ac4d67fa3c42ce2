"""LLM prompts for knowledge graph generation."""

JSON_OUTPUT_RULES = """
IMPORTANT OUTPUT RULES:
1. Return ONLY valid JSON.
2. Do NOT use Markdown code blocks.
3. Do NOT include comments (e.g. // or /* */).
4. Do NOT include any conversational text before or after the JSON.
"""

GRAPH_SYSTEM_PROMPT = """You build structured learning maps as JSON knowledge graphs.
Output only the requested JSON object."""

GRAPH_GENERATION_PROMPT = """Create a detailed knowledge graph for learning about: "{topic}".
The user's current status is: "{status}".

Return a JSON object with two arrays:
1. "nodes": Objects with "id" (string), "label" (short name), "group" (category name), and "description" (short summary).
2. "links": Objects with "source" (node id), "target" (node id), and "relation" (dependency type).

Ensure the graph starts from fundamentals matching the user's status and progresses to advanced topics.
""" + JSON_OUTPUT_RULES

GRAPH_EXPANSION_PROMPT = """Context: The user is learning about "{topic}".
They have selected the following specific concepts to "Subdivide" or "Expand" into more detail:
{selected}

Task:
1. Break down these selected concepts into granular sub-concepts (new nodes).
2. Define relationships (links) between these new sub-concepts AND the original selected nodes (use the provided "id" to link back).
3. The goal is to deepen the knowledge graph in this specific area.

Return a JSON object with:
1. "nodes": New granular nodes. DO NOT return the original input nodes, only new ones.
   Fields: "id" (unique string), "label", "group" (should relate to parent), "description".
2. "links": Links connecting new nodes to each other OR new nodes to the original selected nodes.
""" + JSON_OUTPUT_RULES

ACTION_PLAN_PROMPT = """I am learning about "{topic}". My current background is: "{status}".

I want to master the specific concept: "{label}".

Please provide a concise, actionable learning plan.
1. Explain the concept simply.
2. List 3-5 specific action steps to learn it (readings, exercises, projects).
3. Explain why this node is important in the larger context of {topic}.

Cite up-to-date resources as Markdown links.
"""
