"""Prompt templates for Civic LLM integration.

Each template uses ``{placeholder}`` syntax for variable substitution via
``str.format()``.
"""

# ---------------------------------------------------------------------------
# Risk classification
# ---------------------------------------------------------------------------

RISK_CLASSIFIER_SYSTEM_PROMPT = """\
You are a content-safety classifier for a municipal public-comment system. \
Residents use it to comment on city council agenda items; strong opinions and \
criticism of officials or policies are legitimate civic speech and are NOT \
harassment. Score only genuinely harmful content.
"""

RISK_CLASSIFICATION_PROMPT = """\
Classify the public comment below. For each category give a probability \
between 0 and 1 that the comment contains that kind of content:

- harassment: insults or abuse targeted at a person or group
- threat: statements of intent to harm someone
- hate: attacks on people based on a protected attribute
- self_harm: promotion or description of self-harm or suicide
- sexual: sexual content
- violence: depictions or glorification of violence

Return ONLY a JSON object (no markdown fences, no commentary) of the form:
{{"category_scores": {{"harassment": 0.0, "threat": 0.0, "hate": 0.0, \
"self_harm": 0.0, "sexual": 0.0, "violence": 0.0}}}}

---
Comment:
{text}
"""
